"""
Comment DTO.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from devbunker.models.base import format_datetime, parse_datetime


@dataclass
class Comment:
    """A comment on a content item. Replies nest one level deep."""

    id: str
    text: str
    user_id: Optional[str] = None
    content_id: Optional[str] = None
    parent_id: Optional[str] = None
    author_email: str = ''
    author_avatar: Optional[str] = None
    created_at: Optional[datetime] = None
    replies: List['Comment'] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Comment':
        return cls(
            id=data['id'],
            text=data.get('text') or '',
            user_id=data.get('user_id'),
            content_id=data.get('content_id'),
            parent_id=data.get('parent_id') or None,
            author_email=data.get('authorEmail') or '',
            author_avatar=data.get('authorAvatar'),
            created_at=parse_datetime(data.get('created_at')),
            replies=[cls.from_api(reply) for reply in data.get('replies') or []],
        )

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    @property
    def author_display(self) -> str:
        """Email local part, or 'Anonymous' when the author is unknown."""
        if not self.author_email:
            return 'Anonymous'
        return self.author_email.split('@', 1)[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'user_id': self.user_id,
            'content_id': self.content_id,
            'parent_id': self.parent_id,
            'authorEmail': self.author_email,
            'authorAvatar': self.author_avatar,
            'created_at': format_datetime(self.created_at),
            'replies': [reply.to_dict() for reply in self.replies],
        }
