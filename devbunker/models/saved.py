"""
Bookmark and read-later join records.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from devbunker.models.base import parse_datetime


@dataclass
class SavedItem:
    """Links a user to a content item (bookmark or read-later entry)."""

    id: str
    content_id: str
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'SavedItem':
        return cls(
            id=data['id'],
            content_id=data['content_id'],
            user_id=data.get('user_id'),
            created_at=parse_datetime(data.get('created_at')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'content_id': self.content_id,
            'user_id': self.user_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


def index_by_content(items: Iterable[SavedItem]) -> Dict[str, SavedItem]:
    """Map content ids to their saved record, for card menus and removal."""
    return {item.content_id: item for item in items}
