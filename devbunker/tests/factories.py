"""
Record factories for tests.

Build DTOs with sensible defaults so tests only spell out the fields
they care about.
"""

from datetime import datetime, timezone

from devbunker.models import (
    Comment,
    ContentItem,
    Notification,
    SavedItem,
    TaxonomyRequest,
    User,
)


def make_content(id='c1', title='Intro to Flask', content_type=ContentItem.TYPE_POST,
                 status=ContentItem.STATUS_PUBLISHED, author_id='user-1',
                 author_email='creator@example.com', created_at=None, **kwargs):
    """Build a ContentItem with sensible defaults."""
    return ContentItem(
        id=id,
        title=title,
        content_type=content_type,
        status=status,
        author_id=author_id,
        author_email=author_email,
        created_at=created_at or datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc),
        **kwargs
    )


def make_user(id='u1', email='alice@example.com', role='consumer', status=User.STATUS_ACTIVE,
              created_at=None):
    return User(
        id=id,
        email=email,
        role=role,
        status=status,
        created_at=created_at or datetime(2026, 1, 10, tzinfo=timezone.utc),
    )


def make_request(id='r1', name='python', kind=TaxonomyRequest.KIND_TAG, status='pending',
                 user_id='u1', created_at=None):
    return TaxonomyRequest(
        id=id,
        kind=kind,
        name=name,
        status=status,
        user_id=user_id,
        created_at=created_at or datetime(2026, 1, 12, tzinfo=timezone.utc),
    )


def make_comment(id, text='Nice', parent_id=None, minute=0, replies=None, author_email='bob@example.com'):
    return Comment(
        id=id,
        text=text,
        parent_id=parent_id,
        author_email=author_email,
        created_at=datetime(2026, 1, 15, 10, minute, tzinfo=timezone.utc),
        replies=replies or [],
    )


def make_notification(id='n1', title='Approved', read=False, created_at=None):
    return Notification(
        id=id,
        title=title,
        message=f'{title} message',
        type=Notification.TYPE_APPROVAL,
        read=read,
        created_at=created_at or datetime(2026, 1, 15, tzinfo=timezone.utc),
    )


def make_saved(id, content_id):
    return SavedItem(id=id, content_id=content_id, user_id='user-1')
