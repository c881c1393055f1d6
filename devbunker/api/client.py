"""
DevBunker REST API Client.

Wraps every /api endpoint the portal consumes. Responses are JSON
objects carrying a 'success' flag; the client unwraps the payload key
each endpoint uses and converts records into DTOs from devbunker.models.

Failures raise ApiError subclasses (see devbunker.api.errors):
- HTTP status >= 400, or a body with success=false
- ApiUnavailableError when the API is unreachable or times out

Usage:
    api = ApiClient('http://localhost:3000', token=session.get('token'))
    posts = api.list_content('post', q='python', status=['published'])
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from devbunker.api.errors import (
    ApiError,
    ApiUnavailableError,
    error_for_status,
)
from devbunker.models import (
    Category,
    Comment,
    ContentItem,
    Notification,
    Reference,
    SavedItem,
    Tag,
    TaxonomyRequest,
    User,
)


# Configure logging
logger = logging.getLogger(__name__)


# Content type -> (URL segment / list key, single item key)
CONTENT_ENDPOINTS = {
    ContentItem.TYPE_POST: ('posts', 'post'),
    ContentItem.TYPE_MINDMAP: ('mindmaps', 'mindmap'),
    ContentItem.TYPE_RESEARCH: ('research', 'research'),
}

CONTENT_TYPE_ALL = 'all'

# Query parameters accepted by the content list endpoints
CONTENT_FILTERS = (
    'q',
    'status',
    'category',
    'tag',
    'author_email',
    'created_after',
    'created_before',
    'updated_after',
    'updated_before',
    'has_references',
    'reference_text',
)


def content_endpoint(content_type: str) -> Tuple[str, str]:
    """
    Resolve a content type (singular or plural) to its endpoint keys.

    Raises:
        ValueError: if the type is not post, mindmap or research
    """
    if content_type in CONTENT_ENDPOINTS:
        return CONTENT_ENDPOINTS[content_type]
    for plural, single in CONTENT_ENDPOINTS.values():
        if content_type == plural:
            return plural, single
    raise ValueError(f"Unknown content type: {content_type}")


def _join_ids(ids: Iterable[str]) -> str:
    return ','.join(str(i) for i in ids if i)


class ApiClient:
    """
    Client for the DevBunker REST API.

    One instance is built per request with the bearer token held in the
    session. Anonymous instances (token=None) can call the public
    read-only endpoints.
    """

    CONNECT_TIMEOUT = 5

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout

    # ==========================================================================
    # Transport
    # ==========================================================================

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                 json: Optional[Dict[str, Any]] = None, files: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send a request and return the decoded JSON body.

        Raises:
            ApiUnavailableError: connection error or timeout
            ApiError: non-2xx status or success=false in the body
        """
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v not in (None, '', [])}

        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(),
                params=params or None,
                json=json,
                files=files,
                timeout=(self.CONNECT_TIMEOUT, self.timeout),
            )
        except (ConnectionError, Timeout) as e:
            logger.error(f"API unavailable for {method} {path}: {e}")
            raise ApiUnavailableError(f"DevBunker API unavailable: {e}")
        except RequestException as e:
            logger.error(f"API request failed for {method} {path}: {e}")
            raise ApiError(f"Request failed: {e}", status_code=502)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {'data': data}

        if response.status_code >= 400 or data.get('success') is False:
            message = (
                data.get('error')
                or data.get('message')
                or f"Request failed with status {response.status_code}"
            )
            status_code = response.status_code if response.status_code >= 400 else 400
            logger.error(f"API error for {method} {path}: {status_code} {message}")
            raise error_for_status(status_code, message, data)

        return data

    def _get(self, path: str, **params) -> Dict[str, Any]:
        return self._request('GET', path, params=params)

    def _post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request('POST', path, json=json or {})

    def _put(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request('PUT', path, json=json or {})

    def _delete(self, path: str) -> Dict[str, Any]:
        return self._request('DELETE', path)

    # ==========================================================================
    # Auth
    # ==========================================================================

    def login(self, email: str, password: str) -> Tuple[str, Dict[str, Any]]:
        """Log in and return (token, user) where user holds id, email and role."""
        data = self._post('/api/auth/login', {'email': email, 'password': password})
        token = data.get('token')
        if not token:
            raise ApiError('Login response did not include a token', status_code=502)
        self.token = token
        return token, data.get('user') or {}

    def register(self, email: str, password: str) -> Dict[str, Any]:
        data = self._post('/api/auth/register', {'email': email, 'password': password})
        return data.get('user') or {}

    def logout(self) -> None:
        self._post('/api/auth/logout')
        self.token = None

    def me(self) -> Dict[str, Any]:
        return self._get('/api/auth/me').get('user') or {}

    def change_password(self, old_password: str, new_password: str) -> str:
        data = self._post('/api/auth/change-password', {
            'oldPassword': old_password,
            'newPassword': new_password,
        })
        return data.get('message', 'Password updated successfully')

    def send_reset_link(self, email: str) -> None:
        self._post('/api/auth/reset', {'email': email})

    def generate_pin(self, email: str) -> None:
        self._post('/api/auth/generate-pin', {'email': email})

    def verify_pin(self, email: str, pin: str) -> None:
        self._post('/api/auth/verify-pin', {'email': email, 'pin': pin})

    def reset_password(self, email: str, new_password: str) -> None:
        self._post('/api/auth/change-password-reset', {
            'email': email,
            'newPassword': new_password,
        })

    # ==========================================================================
    # Content
    # ==========================================================================

    def list_content(self, content_type: str = CONTENT_TYPE_ALL, **filters) -> List[ContentItem]:
        """
        List content items of one type, or all three types.

        Args:
            content_type: 'post', 'mindmap', 'research' (or plural) or 'all'
            **filters: any of CONTENT_FILTERS; 'status' may be a list

        Returns:
            List of ContentItem
        """
        if content_type == CONTENT_TYPE_ALL:
            items: List[ContentItem] = []
            for single in CONTENT_ENDPOINTS:
                items.extend(self.list_content(single, **filters))
            return items

        plural, _ = content_endpoint(content_type)
        params = {}
        for key in CONTENT_FILTERS:
            value = filters.get(key)
            if isinstance(value, (list, tuple, set)):
                value = _join_ids(value)
            elif isinstance(value, bool):
                value = 'true' if value else None
            params[key] = value

        data = self._get(f'/api/content/{plural}', **params)
        return [ContentItem.from_api(item) for item in data.get(plural) or []]

    def get_content(self, content_type: str, content_id: str) -> ContentItem:
        plural, single = content_endpoint(content_type)
        data = self._get(f'/api/content/{plural}/{content_id}')
        return ContentItem.from_api(data[single])

    def find_content(self, content_id: str) -> Optional[ContentItem]:
        """Look a content item up by id across all three types."""
        for item in self.list_content(CONTENT_TYPE_ALL):
            if item.id == content_id:
                return item
        return None

    def create_content(self, content_type: str, payload: Dict[str, Any]) -> ContentItem:
        plural, single = content_endpoint(content_type)
        data = self._post(f'/api/content/{plural}', payload)
        return ContentItem.from_api(data[single])

    def update_content(self, content_type: str, content_id: str, payload: Dict[str, Any]) -> Optional[ContentItem]:
        plural, single = content_endpoint(content_type)
        data = self._put(f'/api/content/{plural}/{content_id}', payload)
        item = data.get(single)
        return ContentItem.from_api(item) if item else None

    def delete_content(self, content_type: str, content_id: str) -> None:
        plural, _ = content_endpoint(content_type)
        self._delete(f'/api/content/{plural}/{content_id}')
        logger.info(f"Deleted {content_type} {content_id}")

    def request_approval(self, content_id: str) -> Optional[ContentItem]:
        """Submit a research draft for admin approval."""
        data = self._post(f'/api/content/research/{content_id}/request-approval')
        item = data.get('research')
        return ContentItem.from_api(item) if item else None

    def content_tags(self, content_id: str) -> List[Tag]:
        data = self._get('/api/content-tags', contentId=content_id)
        return [Tag.from_api(tag) for tag in data.get('tags') or []]

    def add_content_tag(self, content_id: str, tag_id: str) -> None:
        self._post(f'/api/content/{content_id}/tags', {'tagId': tag_id})

    def remove_content_tag(self, content_id: str, tag_id: str) -> None:
        self._delete(f'/api/content/{content_id}/tags/{tag_id}')

    # ==========================================================================
    # Taxonomy
    # ==========================================================================

    def tags(self) -> List[Tag]:
        return [Tag.from_api(tag) for tag in self._get('/api/tags').get('tags') or []]

    def search_tags(self, q: str = '', page: int = 1, limit: int = 20) -> Tuple[List[Tag], bool]:
        data = self._get('/api/tags/search', q=q, page=page, limit=limit)
        return [Tag.from_api(tag) for tag in data.get('items') or []], bool(data.get('hasMore'))

    def request_tag(self, name: str, description: str = '') -> TaxonomyRequest:
        data = self._post('/api/tags/request', {'tag_name': name, 'description': description or None})
        return TaxonomyRequest.from_api(data['request'], TaxonomyRequest.KIND_TAG)

    def categories(self) -> List[Category]:
        data = self._get('/api/categories')
        return [Category.from_api(cat) for cat in data.get('categories') or []]

    def search_categories(self, q: str = '') -> List[Category]:
        data = self._get('/api/categories/search', q=q)
        return [Category.from_api(cat) for cat in data.get('categories') or []]

    def request_category(self, name: str, description: str = '') -> TaxonomyRequest:
        data = self._post('/api/categories/request', {
            'category_name': name,
            'description': description or None,
        })
        return TaxonomyRequest.from_api(data['request'], TaxonomyRequest.KIND_CATEGORY)

    # ==========================================================================
    # Bookmarks and Read Later
    # ==========================================================================

    def bookmarks(self) -> List[SavedItem]:
        data = self._get('/api/bookmarks')
        return [SavedItem.from_api(item) for item in data.get('bookmarks') or []]

    def add_bookmark(self, content_id: str) -> Optional[SavedItem]:
        # Already-bookmarked content comes back without a record
        data = self._post('/api/bookmarks', {'content_id': content_id})
        return SavedItem.from_api(data['bookmark']) if data.get('bookmark') else None

    def remove_bookmark(self, bookmark_id: str) -> None:
        self._delete(f'/api/bookmarks/{bookmark_id}')

    def read_later(self) -> List[SavedItem]:
        data = self._get('/api/read-later')
        return [SavedItem.from_api(item) for item in data.get('items') or []]

    def add_read_later(self, content_id: str) -> Optional[SavedItem]:
        data = self._post('/api/read-later', {'content_id': content_id})
        return SavedItem.from_api(data['item']) if data.get('item') else None

    def remove_read_later(self, item_id: str) -> None:
        self._delete(f'/api/read-later/{item_id}')

    # ==========================================================================
    # Comments, Votes and References
    # ==========================================================================

    def comments(self, content_id: str) -> List[Comment]:
        data = self._get('/api/comments', content_id=content_id)
        return [Comment.from_api(c) for c in data.get('comments') or []]

    def add_comment(self, content_id: str, text: str, parent_id: Optional[str] = None) -> Optional[Comment]:
        data = self._post('/api/comments', {
            'content_id': content_id,
            'text': text,
            'parent_id': parent_id or None,
        })
        return Comment.from_api(data['comment']) if data.get('comment') else None

    def comment_counts(self, content_ids: Iterable[str]) -> Dict[str, int]:
        ids = _join_ids(content_ids)
        if not ids:
            return {}
        data = self._get('/api/comments/counts', content_ids=ids)
        return {k: int(v) for k, v in (data.get('counts') or {}).items()}

    def vote(self, content_id: str, vote_type: str) -> str:
        """
        Cast a like or dislike.

        Voting the same type twice removes the vote; voting the other type
        switches it. Returns the API's message.
        """
        if vote_type not in ('like', 'dislike'):
            raise ValueError(f"Invalid vote type: {vote_type}")
        data = self._post('/api/vote', {'content_id': content_id, 'vote_type': vote_type})
        return data.get('message', '')

    def votes(self, content_id: str) -> Dict[str, int]:
        data = self._get('/api/vote', content_id=content_id)
        return {'likes': int(data.get('likes') or 0), 'dislikes': int(data.get('dislikes') or 0)}

    def vote_counts(self, content_ids: Iterable[str]) -> Dict[str, Dict[str, int]]:
        ids = _join_ids(content_ids)
        if not ids:
            return {}
        data = self._get('/api/vote/counts', content_ids=ids)
        return data.get('counts') or {}

    def references(self, content_id: str) -> List[Reference]:
        data = self._get('/api/references', content_id=content_id)
        return [Reference.from_api(ref) for ref in data.get('references') or []]

    def add_reference(self, content_id: str, text: str) -> Optional[Reference]:
        data = self._post('/api/references', {'content_id': content_id, 'text': text})
        return Reference.from_api(data['reference']) if data.get('reference') else None

    def reference_texts(self) -> List[str]:
        """Distinct reference texts across all content (for filter dropdowns)."""
        refs = self._get('/api/reference-search').get('references') or []
        return [r['text'] if isinstance(r, dict) else r for r in refs]

    def search_references(self, q: str = '', page: int = 1, limit: int = 20) -> Tuple[List[str], bool]:
        data = self._get('/api/reference-search/search', q=q, page=page, limit=limit)
        return list(data.get('items') or []), bool(data.get('hasMore'))

    # ==========================================================================
    # Notifications
    # ==========================================================================

    def notifications(self) -> List[Notification]:
        data = self._get('/api/notifications')
        return [Notification.from_api(n) for n in data.get('notifications') or []]

    def mark_notification_read(self, notification_id: str) -> None:
        self._put(f'/api/notifications/{notification_id}/read')

    def mark_all_notifications_read(self) -> None:
        self._put('/api/notifications/mark-all-read')

    # ==========================================================================
    # Profile Images
    # ==========================================================================

    def upload_profile_image(self, file_storage) -> Optional[str]:
        """
        Upload a profile image (a werkzeug FileStorage) as multipart 'image'.

        Returns:
            The hosted image URL
        """
        files = {
            'image': (file_storage.filename, file_storage.stream, file_storage.mimetype),
        }
        data = self._request('POST', '/api/upload-profile', files=files)
        return data.get('url')

    def profile_image(self) -> Optional[str]:
        return self._get('/api/upload-profile').get('url')

    def profile_image_for(self, user_id: str) -> Optional[str]:
        return self._get(f'/api/upload-profile/{user_id}').get('url')

    def profile_images(self, user_ids: Iterable[str]) -> Dict[str, str]:
        ids = _join_ids(user_ids)
        if not ids:
            return {}
        return self._get('/api/profile-images', ids=ids).get('images') or {}

    # ==========================================================================
    # Search
    # ==========================================================================

    def search(self, q: str, content_type: Optional[str] = None, category: Optional[str] = None,
               tags: Optional[List[str]] = None) -> List[ContentItem]:
        params: Dict[str, Any] = {'q': q, 'type': content_type, 'category': category}
        if tags:
            # Repeated ?tags=a&tags=b
            params['tags'] = list(tags)
        data = self._request('GET', '/api/search', params=params)
        return [ContentItem.from_api(item) for item in data.get('results') or []]

    # ==========================================================================
    # Admin: Users
    # ==========================================================================

    def admin_users(self) -> List[User]:
        return [User.from_api(u) for u in self._get('/api/admin/users').get('users') or []]

    def admin_create_user(self, email: str, password: str, role: str) -> User:
        data = self._post('/api/admin/users', {'email': email, 'password': password, 'role': role})
        return User.from_api(data['user'])

    def admin_delete_user(self, user_id: str) -> None:
        self._delete(f'/api/admin/users/{user_id}')

    def admin_set_user_status(self, user_id: str, status: str) -> Optional[User]:
        if status not in User.VALID_STATUSES:
            raise ValueError(f"Invalid user status: {status}")
        data = self._put(f'/api/admin/users/{user_id}/status', {'status': status})
        return User.from_api(data['user']) if data.get('user') else None

    # ==========================================================================
    # Admin: Tags and Categories
    # ==========================================================================

    def admin_tag_requests(self) -> List[TaxonomyRequest]:
        data = self._get('/api/admin/tags/requests')
        return [TaxonomyRequest.from_api(r, TaxonomyRequest.KIND_TAG) for r in data.get('requests') or []]

    def admin_create_tag(self, name: str, description: str = '') -> Tag:
        data = self._post('/api/admin/tags', {'name': name, 'description': description or None})
        return Tag.from_api(data['tag'])

    def admin_approve_tag(self, request_id: str) -> None:
        self._put(f'/api/admin/tags/{request_id}/approve')

    def admin_reject_tag(self, request_id: str) -> None:
        self._put(f'/api/admin/tags/{request_id}/reject')

    def admin_delete_tag(self, request_id: str) -> None:
        self._delete(f'/api/admin/tags/{request_id}')

    def admin_category_requests(self) -> List[TaxonomyRequest]:
        data = self._get('/api/admin/categories/requests')
        return [
            TaxonomyRequest.from_api(r, TaxonomyRequest.KIND_CATEGORY)
            for r in data.get('requests') or []
        ]

    def admin_create_category(self, name: str, description: str = '') -> Category:
        data = self._post('/api/admin/categories', {'name': name, 'description': description or None})
        return Category.from_api(data['category'])

    def admin_approve_category(self, request_id: str) -> None:
        self._put(f'/api/admin/categories/{request_id}/approve')

    def admin_reject_category(self, request_id: str) -> None:
        self._put(f'/api/admin/categories/{request_id}/reject')

    def admin_delete_category(self, request_id: str) -> None:
        self._delete(f'/api/admin/categories/{request_id}')

    # ==========================================================================
    # Admin: Content Moderation
    # ==========================================================================

    def admin_pending_content(self) -> List[ContentItem]:
        data = self._get('/api/admin/content/pending')
        return [ContentItem.from_api(item) for item in data.get('content') or []]

    def admin_approve_content(self, content_id: str) -> None:
        self._put(f'/api/admin/content/{content_id}/approve')

    def admin_reject_content(self, content_id: str) -> None:
        self._put(f'/api/admin/content/{content_id}/reject')

    def admin_delete_content(self, content_id: str) -> None:
        self._delete(f'/api/admin/content/{content_id}')
