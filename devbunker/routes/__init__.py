"""
DevBunker Routes Package

Blueprint registration for all page modules:
- Auth: Login, registration, logout and password reset
- Dashboard: Content grids, detail, card actions, share, delete, editor
- Mindmaps: Mindmap grids, editor, save and SVG export
- Account: Settings and notifications
- Admin: User, tag, category and content moderation
"""

from devbunker.routes.auth import auth_bp
from devbunker.routes.dashboard import dashboard_bp
from devbunker.routes.mindmaps import mindmaps_bp
from devbunker.routes.account import account_bp
from devbunker.routes.admin import admin_bp

__all__ = [
    'auth_bp',
    'dashboard_bp',
    'mindmaps_bp',
    'account_bp',
    'admin_bp',
]
