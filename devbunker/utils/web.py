"""
Web helpers shared by the page blueprints.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
from urllib.parse import urlparse

from flask import current_app, redirect, request, url_for
from werkzeug.utils import secure_filename

from devbunker.services.grid import GridQuery


def is_safe_next_url(target: Optional[str]) -> bool:
    """Only same-site relative paths are accepted as redirect targets."""
    if not target:
        return False
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or '\\' in target:
        return False
    return target.startswith('/') and not target.startswith('//')


def redirect_back(default_endpoint: str, **values):
    """
    Redirect to the form's 'next' field (the grid the action came from),
    or to default_endpoint when it is missing or unsafe.
    """
    target = request.form.get('next') or request.args.get('next')
    if is_safe_next_url(target):
        return redirect(target)
    return redirect(url_for(default_endpoint, **values))


def wants_json() -> bool:
    """True for fetch()/XHR callers that asked for JSON."""
    return request.is_json or request.accept_mimetypes.best == 'application/json'


def allowed_image(filename: Optional[str], allowed_extensions: Iterable[str]) -> bool:
    """Check an uploaded file name against the allowed image extensions."""
    name = secure_filename(filename or '')
    if '.' not in name:
        return False
    return name.rsplit('.', 1)[1].lower() in set(allowed_extensions)


def format_time_ago(dt: Optional[datetime]) -> str:
    """Format a datetime as a human-readable 'time ago' string."""
    if dt is None:
        return "Unknown"

    now = datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    seconds = (now - dt).total_seconds()

    if seconds < 60:
        return "Just now"
    elif seconds < 3600:
        minutes = int(seconds / 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    elif seconds < 86400:
        hours = int(seconds / 3600)
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    elif seconds < 604800:
        days = int(seconds / 86400)
        return f"{days} day{'s' if days != 1 else ''} ago"
    else:
        return dt.strftime("%b %d, %Y")


def format_date(dt: Optional[datetime]) -> str:
    return dt.strftime("%b %d, %Y") if dt else ''


def grid_query() -> GridQuery:
    """The current request's grid filters, using the configured page sizes."""
    return GridQuery.from_args(
        request.args,
        default_per_page=current_app.config['DEFAULT_PER_PAGE'],
        per_page_options=current_app.config['PER_PAGE_OPTIONS'],
    )
