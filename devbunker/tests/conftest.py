"""
Pytest configuration and fixtures for DevBunker portal tests.

This module provides shared fixtures for testing:
- Flask application with test configuration
- Test client
- A mocked ApiClient patched in for every page route
- A login helper that puts a user and token in the session
- Record factories live in devbunker.tests.factories
"""

from unittest.mock import MagicMock, patch

import pytest

from devbunker.api import ApiClient
from devbunker.app import create_app
from devbunker.models import PortalUser


@pytest.fixture(scope='function')
def app():
    """
    Create a Flask application configured for testing.

    Yields:
        Flask application instance
    """
    application = create_app(config_name='testing')
    application.config['TESTING'] = True

    with application.app_context():
        yield application


@pytest.fixture(scope='function')
def client(app):
    """
    Create a test client for the Flask application.

    Args:
        app: Flask application fixture

    Returns:
        Flask test client
    """
    return app.test_client()


@pytest.fixture(scope='function')
def api():
    """
    Replace the per-request ApiClient with a mock.

    List endpoints return empty lists by default so pages render; tests
    set return values for the calls they care about.

    Yields:
        MagicMock with the ApiClient interface
    """
    mock_api = MagicMock(spec=ApiClient)

    for name in (
        'list_content', 'bookmarks', 'read_later', 'comments', 'content_tags',
        'references', 'categories', 'tags', 'reference_texts', 'notifications',
        'admin_users', 'admin_tag_requests', 'admin_category_requests',
        'admin_pending_content', 'search', 'search_categories',
    ):
        getattr(mock_api, name).return_value = []
    for name in ('comment_counts', 'vote_counts', 'profile_images'):
        getattr(mock_api, name).return_value = {}
    mock_api.votes.return_value = {'likes': 0, 'dislikes': 0}
    mock_api.search_tags.return_value = ([], False)
    mock_api.search_references.return_value = ([], False)
    mock_api.profile_image.return_value = None
    mock_api.find_content.return_value = None

    with patch('devbunker.utils.auth.ApiClient', return_value=mock_api) as api_class:
        mock_api.api_class = api_class
        yield mock_api


@pytest.fixture(scope='function')
def login_as(client):
    """
    Log a user in by writing the session Flask-Login and the API client read.

    Usage:
        user = login_as('admin')
    """
    def _login(role='consumer', user_id='user-1', email=None):
        email = email or f'{role}@example.com'
        with client.session_transaction() as sess:
            sess['_user_id'] = user_id
            sess['_fresh'] = True
            sess['token'] = 'test-token'
            sess['user'] = {'id': user_id, 'email': email, 'role': role}
        return PortalUser(user_id, email, role)

    return _login
