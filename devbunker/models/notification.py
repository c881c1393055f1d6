"""
Notification and reference DTOs.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from devbunker.models.base import parse_datetime


@dataclass
class Notification:
    TYPE_APPROVAL: ClassVar[str] = 'approval'
    TYPE_SYSTEM: ClassVar[str] = 'system'
    TYPE_CONTENT: ClassVar[str] = 'content'

    VALID_TYPES: ClassVar[List[str]] = [TYPE_APPROVAL, TYPE_SYSTEM, TYPE_CONTENT]

    id: str
    title: str
    message: str = ''
    type: str = TYPE_SYSTEM
    read: bool = False
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Notification':
        return cls(
            id=data['id'],
            title=data.get('title') or '',
            message=data.get('message') or '',
            type=data.get('type') or cls.TYPE_SYSTEM,
            read=bool(data.get('read')),
            user_id=data.get('user_id'),
            created_at=parse_datetime(data.get('created_at')),
        )


@dataclass
class Reference:
    """A free-text reference attached to a content item."""

    id: str
    text: str
    content_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Reference':
        return cls(
            id=data['id'],
            text=data.get('text') or '',
            content_id=data.get('content_id'),
            user_id=data.get('user_id'),
            created_at=parse_datetime(data.get('created_at')),
        )
