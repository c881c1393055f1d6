"""
DevBunker Models Package.

Data transfer objects for the records returned by the DevBunker REST API:
- ContentItem: posts, mindmaps and research
- Comment: comments with one level of replies
- SavedItem: bookmark and read-later join records
- Tag, Category, TaxonomyRequest: taxonomy and moderation requests
- User, PortalUser: admin-view accounts and the logged-in identity
- Notification, Reference
"""

from devbunker.models.base import parse_datetime
from devbunker.models.content import ContentItem
from devbunker.models.comment import Comment
from devbunker.models.saved import SavedItem, index_by_content
from devbunker.models.taxonomy import Tag, Category, TaxonomyRequest
from devbunker.models.user import User, PortalUser
from devbunker.models.notification import Notification, Reference

__all__ = [
    'parse_datetime',
    'ContentItem',
    'Comment',
    'SavedItem',
    'index_by_content',
    'Tag',
    'Category',
    'TaxonomyRequest',
    'User',
    'PortalUser',
    'Notification',
    'Reference',
]
