"""
Admin Web Routes

Moderation pages for admins: users, tag and category requests, and
content. Every grid supports search, filters, stat boxes and bulk
actions; bulk actions call the API once per selected id and report
which ids failed.
"""

import logging

from flask import Blueprint, abort, current_app, flash, jsonify, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from devbunker.api.errors import ApiError, ConflictError
from devbunker.models import ContentItem, TaxonomyRequest, User
from devbunker.models.taxonomy import VALID_STATUSES as REQUEST_STATUSES
from devbunker.models.user import ROLE_ADMIN, VALID_ROLES
from devbunker.services.bulk import run_bulk
from devbunker.services.grid import (
    filter_content, filter_requests, filter_users, newest_first, paginate, status_counts, unique_values
)
from devbunker.utils.auth import get_api, role_required
from devbunker.utils.web import grid_query, redirect_back, wants_json


logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)

KINDS = {
    TaxonomyRequest.KIND_TAG: 'tags',
    TaxonomyRequest.KIND_CATEGORY: 'categories',
}

# Content grid views: everything, or only what awaits a decision
CONTENT_VIEW_ALL = 'all'
CONTENT_VIEW_PENDING = 'pending'

BULK_DELETE = 'delete'


@admin_bp.before_request
@login_required
@role_required(ROLE_ADMIN)
def require_admin():
    """Every admin page needs a logged-in admin."""


def _selected_ids():
    """Ids ticked in a grid, from the form or a JSON body."""
    if request.is_json:
        return [str(i) for i in (request.get_json(silent=True) or {}).get('ids') or []]
    return request.form.getlist('ids')


def _bulk_response(result, endpoint: str, **values):
    """Report a BulkResult: JSON for fetch callers, flashes otherwise."""
    if wants_json():
        return jsonify(result.to_dict()), 200 if result.ok else 207
    flash(result.summary(), 'success' if result.ok else 'error')
    for message in result.failure_messages():
        flash(message, 'error')
    return redirect_back(endpoint, **values)


# ============================================================================
# Users
# ============================================================================

@admin_bp.route('/users')
def users():
    query = grid_query()
    all_users = newest_first(get_api().admin_users())
    filtered = filter_users(all_users, query)
    page = paginate(filtered, query.page, query.per_page)

    return render_template(
        'admin/users.html',
        page=page,
        query=query,
        stats=status_counts(all_users, 'status', User.VALID_STATUSES),
        role_stats=status_counts(all_users, 'role', VALID_ROLES),
        status_options=User.VALID_STATUSES,
        role_options=VALID_ROLES,
    )


@admin_bp.route('/users', methods=['POST'])
def create_user():
    email = (request.form.get('email') or '').strip().lower()
    password = request.form.get('password', '')
    role = request.form.get('role') or ''
    min_length = current_app.config['PASSWORD_MIN_LENGTH']

    if not email or '@' not in email:
        flash('A valid email address is required', 'error')
    elif len(password) < min_length:
        flash(f'Password must be at least {min_length} characters long', 'error')
    elif role not in VALID_ROLES:
        flash(f"Role must be one of: {', '.join(VALID_ROLES)}", 'error')
    else:
        try:
            user = get_api().admin_create_user(email, password, role)
        except ConflictError:
            flash(f'A user with email {email} already exists', 'error')
        except ApiError as e:
            flash(e.message, 'error')
        else:
            logger.info(f"Admin {current_user.email} created {role} account {user.email}")
            flash(f'User {user.email} created', 'success')

    return redirect(url_for('admin.users'))


@admin_bp.route('/users/bulk', methods=['POST'])
def bulk_users():
    """
    Bulk user actions.

    action: a user status (active, pending, banned, rejected) or 'delete'.
    """
    api = get_api()
    action = request.form.get('action') or (request.get_json(silent=True) or {}).get('action')
    ids = [i for i in _selected_ids() if i != current_user.id]

    if action == BULK_DELETE:
        result = run_bulk(ids, api.admin_delete_user, 'delete')
    elif action in User.VALID_STATUSES:
        result = run_bulk(ids, lambda user_id: api.admin_set_user_status(user_id, action), f'set {action}')
    else:
        abort(400, description=f'Unknown user action: {action}')

    logger.info(f"Admin {current_user.email} bulk {result.action} users: {result.summary()}")
    return _bulk_response(result, 'admin.users')


# ============================================================================
# Tag and Category Requests
# ============================================================================

def _check_kind(kind: str) -> str:
    if kind not in KINDS:
        abort(404)
    return kind


@admin_bp.route('/tags', defaults={'kind': TaxonomyRequest.KIND_TAG})
@admin_bp.route('/categories', defaults={'kind': TaxonomyRequest.KIND_CATEGORY}, endpoint='categories')
def tags(kind):
    """Tag or category request grid."""
    api = get_api()
    query = grid_query()
    if kind == TaxonomyRequest.KIND_TAG:
        entries = api.admin_tag_requests()
    else:
        entries = api.admin_category_requests()
    entries = newest_first(entries)
    filtered = filter_requests(entries, query)
    page = paginate(filtered, query.page, query.per_page)

    return render_template(
        'admin/taxonomy.html',
        kind=kind,
        plural=KINDS[kind],
        page=page,
        query=query,
        stats=status_counts(entries, 'status', REQUEST_STATUSES),
        status_options=REQUEST_STATUSES,
    )


@admin_bp.route('/<kind>/create', methods=['POST'])
def create_taxonomy(kind):
    """Add an approved tag or category directly."""
    _check_kind(kind)
    name = (request.form.get('name') or '').strip()
    description = (request.form.get('description') or '').strip()
    grid = 'admin.tags' if kind == TaxonomyRequest.KIND_TAG else 'admin.categories'

    if not name:
        flash(f'{kind.capitalize()} name is required', 'error')
        return redirect(url_for(grid))

    api = get_api()
    try:
        if kind == TaxonomyRequest.KIND_TAG:
            api.admin_create_tag(name, description)
        else:
            api.admin_create_category(name, description)
    except ApiError as e:
        flash(e.message, 'error')
        return redirect(url_for(grid))

    logger.info(f"Admin {current_user.email} created {kind} '{name}'")
    flash(f'{kind.capitalize()} "{name}" created', 'success')
    return redirect(url_for(grid))


@admin_bp.route('/<kind>/bulk', methods=['POST'])
def bulk_taxonomy(kind):
    """Bulk approve, reject or delete tag/category requests."""
    _check_kind(kind)
    api = get_api()
    action = request.form.get('action') or (request.get_json(silent=True) or {}).get('action')
    handlers = {
        'approve': getattr(api, f'admin_approve_{kind}'),
        'reject': getattr(api, f'admin_reject_{kind}'),
        BULK_DELETE: getattr(api, f'admin_delete_{kind}'),
    }
    handler = handlers.get(action)
    if handler is None:
        abort(400, description=f'Unknown {kind} action: {action}')

    result = run_bulk(_selected_ids(), handler, action)
    logger.info(f"Admin {current_user.email} bulk {action} {KINDS[kind]}: {result.summary()}")
    return _bulk_response(result, 'admin.tags' if kind == TaxonomyRequest.KIND_TAG else 'admin.categories')


# ============================================================================
# Content Moderation
# ============================================================================

@admin_bp.route('/content')
def content():
    """All content, or only content pending approval (?view=pending)."""
    api = get_api()
    view = request.args.get('view', CONTENT_VIEW_ALL)
    if view == CONTENT_VIEW_PENDING:
        items = api.admin_pending_content()
    else:
        view = CONTENT_VIEW_ALL
        items = api.list_content()

    query = grid_query()
    items = newest_first(items)
    filtered = filter_content(items, query)
    page = paginate(filtered, query.page, query.per_page)

    return render_template(
        'admin/content.html',
        view=view,
        page=page,
        query=query,
        stats=status_counts(items, 'status', ContentItem.VALID_STATUSES),
        status_options=ContentItem.VALID_STATUSES,
        category_options=unique_values(items, 'category_label'),
        author_options=unique_values(items, 'author_email'),
    )


@admin_bp.route('/content/bulk', methods=['POST'])
def bulk_content():
    api = get_api()
    action = request.form.get('action') or (request.get_json(silent=True) or {}).get('action')
    handlers = {
        'approve': api.admin_approve_content,
        'reject': api.admin_reject_content,
        BULK_DELETE: api.admin_delete_content,
    }
    handler = handlers.get(action)
    if handler is None:
        abort(400, description=f'Unknown content action: {action}')

    result = run_bulk(_selected_ids(), handler, action)
    logger.info(f"Admin {current_user.email} bulk {action} content: {result.summary()}")
    return _bulk_response(result, 'admin.content')


@admin_bp.route('/notifications')
def notifications():
    return redirect(url_for('account.notifications', **request.args))
