"""
Content item DTO.

Represents a post, mindmap or research record as returned by the
/api/content/{posts|mindmaps|research} endpoints.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from devbunker.models.base import format_datetime, parse_datetime


@dataclass
class ContentItem:
    """
    A typed content item shown in grids, cards and popups.

    Status Values:
        - 'draft': saved but not visible to other users
        - 'published': visible in explore grids
        - 'pending_approval': research waiting for an admin decision
        - 'approved': approved by an admin
        - 'rejected': rejected by an admin
    """

    TYPE_POST: ClassVar[str] = 'post'
    TYPE_MINDMAP: ClassVar[str] = 'mindmap'
    TYPE_RESEARCH: ClassVar[str] = 'research'

    VALID_TYPES: ClassVar[List[str]] = [TYPE_POST, TYPE_MINDMAP, TYPE_RESEARCH]

    STATUS_DRAFT: ClassVar[str] = 'draft'
    STATUS_PUBLISHED: ClassVar[str] = 'published'
    STATUS_PENDING_APPROVAL: ClassVar[str] = 'pending_approval'
    STATUS_APPROVED: ClassVar[str] = 'approved'
    STATUS_REJECTED: ClassVar[str] = 'rejected'

    VALID_STATUSES: ClassVar[List[str]] = [
        STATUS_DRAFT,
        STATUS_PUBLISHED,
        STATUS_PENDING_APPROVAL,
        STATUS_APPROVED,
        STATUS_REJECTED,
    ]

    id: str
    title: str
    content_type: str
    status: str = STATUS_DRAFT
    content_body: str = ''
    description: str = ''
    author_id: Optional[str] = None
    author_email: str = ''
    category_id: Optional[str] = None
    category_name: str = ''
    tags: List[str] = field(default_factory=list)
    references: List[str] = field(default_factory=list)
    votes: int = 0
    excalidraw_data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'ContentItem':
        tags = []
        for tag in data.get('tags') or []:
            # Listings send tag names, content-tag endpoints send objects
            if isinstance(tag, dict):
                tag = tag.get('name')
            if tag:
                tags.append(tag)

        references = []
        for ref in data.get('references') or []:
            if isinstance(ref, dict):
                ref = ref.get('text')
            if ref:
                references.append(ref)

        return cls(
            id=data['id'],
            title=data.get('title') or '',
            content_type=data.get('content_type') or data.get('type') or cls.TYPE_POST,
            status=data.get('status') or cls.STATUS_DRAFT,
            content_body=data.get('content_body') or '',
            description=data.get('description') or '',
            author_id=data.get('author_id'),
            author_email=data.get('authorEmail') or '',
            category_id=data.get('category_id'),
            category_name=data.get('categoryName') or '',
            tags=tags,
            references=references,
            votes=int(data.get('votes') or 0),
            excalidraw_data=data.get('excalidraw_data'),
            created_at=parse_datetime(data.get('created_at')),
            updated_at=parse_datetime(data.get('updated_at')),
        )

    @property
    def is_draft(self) -> bool:
        return self.status == self.STATUS_DRAFT

    @property
    def is_mindmap(self) -> bool:
        return self.content_type == self.TYPE_MINDMAP

    @property
    def category_label(self) -> str:
        """Category name, falling back to the raw id for uncategorized joins."""
        return self.category_name or self.category_id or ''

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and self.author_id == user_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'content_type': self.content_type,
            'status': self.status,
            'content_body': self.content_body,
            'description': self.description,
            'author_id': self.author_id,
            'authorEmail': self.author_email,
            'category_id': self.category_id,
            'categoryName': self.category_name,
            'tags': list(self.tags),
            'references': list(self.references),
            'votes': self.votes,
            'excalidraw_data': self.excalidraw_data,
            'created_at': format_datetime(self.created_at),
            'updated_at': format_datetime(self.updated_at),
        }
