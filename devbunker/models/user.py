"""
User DTOs.

User is the admin-view record returned by /api/admin/users.
PortalUser is the Flask-Login identity rebuilt from the session on each
request; it carries only what the login response returned.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from flask_login import UserMixin

from devbunker.models.base import format_datetime, parse_datetime


ROLE_ADMIN = 'admin'
ROLE_CREATOR = 'creator'
ROLE_CONSUMER = 'consumer'

VALID_ROLES = [ROLE_ADMIN, ROLE_CREATOR, ROLE_CONSUMER]

# Roles allowed to create and edit content
AUTHOR_ROLES = [ROLE_CREATOR, ROLE_ADMIN]


@dataclass
class User:
    """
    A user account as seen by admins.

    Status Values:
        - 'active': can log in
        - 'pending': awaiting admin approval
        - 'banned': blocked by an admin
        - 'rejected': registration rejected (settable through the status endpoint)
    """

    STATUS_ACTIVE: ClassVar[str] = 'active'
    STATUS_PENDING: ClassVar[str] = 'pending'
    STATUS_BANNED: ClassVar[str] = 'banned'
    STATUS_REJECTED: ClassVar[str] = 'rejected'

    VALID_STATUSES: ClassVar[List[str]] = [
        STATUS_ACTIVE,
        STATUS_PENDING,
        STATUS_BANNED,
        STATUS_REJECTED,
    ]

    id: str
    email: str
    role: str = ROLE_CONSUMER
    status: str = STATUS_ACTIVE
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=data['id'],
            email=data.get('email') or '',
            role=data.get('role') or ROLE_CONSUMER,
            status=data.get('status') or cls.STATUS_ACTIVE,
            profile_image=data.get('profile_image'),
            created_at=parse_datetime(data.get('created_at')),
            updated_at=parse_datetime(data.get('updated_at')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role,
            'status': self.status,
            'profile_image': self.profile_image,
            'created_at': format_datetime(self.created_at),
            'updated_at': format_datetime(self.updated_at),
        }


class PortalUser(UserMixin):
    """The logged-in user, as stored in the session."""

    def __init__(self, id: str, email: str, role: str = ROLE_CONSUMER):
        self.id = id
        self.email = email
        self.role = role

    @classmethod
    def from_session(cls, data: Optional[Dict[str, Any]]) -> Optional['PortalUser']:
        if not data or not data.get('id'):
            return None
        return cls(data['id'], data.get('email') or '', data.get('role') or ROLE_CONSUMER)

    def to_session(self) -> Dict[str, str]:
        return {'id': self.id, 'email': self.email, 'role': self.role}

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def can_author(self) -> bool:
        return self.role in AUTHOR_ROLES

    def __repr__(self):
        return f'<PortalUser {self.email} ({self.role})>'
