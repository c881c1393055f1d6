"""
Tag and category DTOs, and the user-submitted requests to add them.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from devbunker.models.base import format_datetime, parse_datetime


STATUS_APPROVED = 'approved'
STATUS_PENDING = 'pending'
STATUS_REJECTED = 'rejected'

VALID_STATUSES = [STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED]


@dataclass
class Tag:
    id: str
    name: str
    status: str = STATUS_APPROVED
    description: str = ''
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Tag':
        return cls(
            id=data['id'],
            name=data.get('name') or '',
            status=data.get('status') or STATUS_APPROVED,
            description=data.get('description') or '',
            created_by=data.get('created_by'),
            created_at=parse_datetime(data.get('created_at')),
        )


@dataclass
class Category(Tag):
    """Categories share the tag shape; a content item has at most one."""


@dataclass
class TaxonomyRequest:
    """
    A tag or category request submitted by a user and moderated by admins.

    The API names the requested value 'tag_name' or 'category_name'
    depending on the kind; both are exposed here as 'name'.
    """

    KIND_TAG: ClassVar[str] = 'tag'
    KIND_CATEGORY: ClassVar[str] = 'category'

    VALID_KINDS: ClassVar[List[str]] = [KIND_TAG, KIND_CATEGORY]

    id: str
    kind: str
    name: str
    status: str = STATUS_PENDING
    description: str = ''
    user_id: Optional[str] = None
    author_email: str = ''
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any], kind: str) -> 'TaxonomyRequest':
        if kind not in cls.VALID_KINDS:
            raise ValueError(f"Unknown request kind: {kind}")
        return cls(
            id=data['id'],
            kind=kind,
            name=data.get(f'{kind}_name') or data.get('name') or '',
            status=data.get('status') or STATUS_PENDING,
            description=data.get('description') or '',
            user_id=data.get('user_id') or data.get('created_by'),
            author_email=data.get('authorEmail') or '',
            created_at=parse_datetime(data.get('created_at')),
        )

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            f'{self.kind}_name': self.name,
            'status': self.status,
            'description': self.description,
            'user_id': self.user_id,
            'authorEmail': self.author_email,
            'created_at': format_datetime(self.created_at),
        }
