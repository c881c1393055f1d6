"""
Portal Authentication Utilities.

The portal never checks passwords itself: the REST API issues a bearer
token at login, and the portal keeps that token plus the user's id,
email and role in the Flask session. Flask-Login rebuilds a PortalUser
from the session on each request.

Usage:
    from devbunker.utils.auth import get_api, role_required

    @blueprint.route('/admin/users')
    @login_required
    @role_required('admin')
    def users():
        users = get_api().admin_users()
"""

import logging
from functools import wraps

from flask import abort, current_app, g, session
from flask_login import current_user, login_user, logout_user

from devbunker.api import ApiClient
from devbunker.models import PortalUser


logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = 'token'
SESSION_USER_KEY = 'user'


def get_api() -> ApiClient:
    """
    API client for the current request, carrying the session's token.

    Built once per request and cached on flask.g.
    """
    api = getattr(g, 'api', None)
    if api is None:
        api = ApiClient(
            current_app.config['API_BASE_URL'],
            token=session.get(SESSION_TOKEN_KEY),
            timeout=current_app.config.get('API_TIMEOUT', 10),
        )
        g.api = api
    return api


def load_session_user(user_id):
    """Flask-Login user loader: the user is whatever the session holds."""
    user = PortalUser.from_session(session.get(SESSION_USER_KEY))
    if user is None or user.id != user_id or not session.get(SESSION_TOKEN_KEY):
        return None
    return user


def start_session(token: str, user_data: dict, remember: bool = False) -> PortalUser:
    """Store the API token and user in the session and log the user in."""
    user = PortalUser.from_session(user_data)
    if user is None:
        raise ValueError('Login response did not include a user id')
    session[SESSION_TOKEN_KEY] = token
    session[SESSION_USER_KEY] = user.to_session()
    login_user(user, remember=remember)
    g.pop('api', None)
    logger.info(f"User {user.email} logged in as {user.role}")
    return user


def end_session() -> None:
    """Forget the token and user."""
    logout_user()
    session.pop(SESSION_TOKEN_KEY, None)
    session.pop(SESSION_USER_KEY, None)
    g.pop('api', None)


def role_required(*roles):
    """
    Decorator to restrict a page to the given roles.

    Must be used AFTER @login_required. Aborts with 403 when the logged-in
    user's role is not listed.

    Usage:
        @blueprint.route('/posts/create')
        @login_required
        @role_required('creator', 'admin')
        def create_post():
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in roles:
                logger.warning(
                    f"User {current_user.email} ({current_user.role}) denied access to {f.__name__}"
                )
                abort(403)
            return f(*args, **kwargs)

        return decorated_function

    return decorator


def home_endpoint_for(user: PortalUser) -> str:
    """Landing page after login: admins go to user moderation."""
    if user.is_admin:
        return 'admin.users'
    return 'dashboard.explore'
