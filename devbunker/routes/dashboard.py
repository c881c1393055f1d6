"""
Dashboard Web Routes

Content grids (explore, posts, research, drafts, bookmarks, read later),
the content detail view with comments and votes, per-card actions,
share and delete pages, the post/research editor and tag/category
request forms.

Every grid fetches the full list from the API, narrows it with a
GridQuery and paginates it server-side. Mutations redirect back to the
page they came from so it re-fetches.
"""

import logging
from typing import Dict, List, Optional

from flask import (
    Blueprint, abort, current_app, flash, jsonify, redirect, render_template,
    request, url_for
)
from flask_login import current_user, login_required

from devbunker.api.errors import ApiError, NotFoundError
from devbunker.models import ContentItem, index_by_content
from devbunker.models.user import AUTHOR_ROLES
from devbunker.services.comments import CommentValidationError, build_comment_tree, count_comments, validate_comment
from devbunker.services.diagram import Diagram, DiagramError, render_svg
from devbunker.services.grid import (
    filter_content, newest_first, paginate, status_counts, unique_values
)
from devbunker.services.share import share_links, share_url
from devbunker.utils.auth import get_api, role_required
from devbunker.utils.web import grid_query, is_safe_next_url, redirect_back, wants_json


logger = logging.getLogger(__name__)

dashboard_bp = Blueprint('dashboard', __name__)

# Statuses other users can see in explore
VISIBLE_STATUSES = [ContentItem.STATUS_PUBLISHED, ContentItem.STATUS_APPROVED]

# Grid endpoint for each content type, and its drafts grid
GRID_ENDPOINTS = {
    ContentItem.TYPE_POST: ('dashboard.posts', 'dashboard.post_drafts'),
    ContentItem.TYPE_MINDMAP: ('mindmaps.index', 'mindmaps.drafts'),
    ContentItem.TYPE_RESEARCH: ('dashboard.research', 'dashboard.research_drafts'),
}


# ============================================================================
# Helper Functions
# ============================================================================

def _check_type(content_type: str) -> str:
    if content_type not in ContentItem.VALID_TYPES:
        abort(404)
    return content_type


def _load_content(content_type: str, content_id: str) -> ContentItem:
    try:
        return get_api().get_content(_check_type(content_type), content_id)
    except NotFoundError:
        abort(404)


def card_context(items: List[ContentItem]) -> Dict:
    """
    Per-card data for the visible page: bookmark and read-later state,
    comment and vote counts, author avatars.
    """
    api = get_api()
    ids = [item.id for item in items]
    author_ids = {item.author_id for item in items if item.author_id}
    return {
        'bookmarked': index_by_content(api.bookmarks()),
        'read_later': index_by_content(api.read_later()),
        'comment_counts': api.comment_counts(ids),
        'vote_counts': api.vote_counts(ids),
        'avatars': api.profile_images(author_ids),
    }


def render_content_grid(title: str, items: List[ContentItem], empty_message: str,
                        create_endpoint: Optional[str] = None, show_status: bool = False):
    """Filter, paginate and render a content card grid."""
    query = grid_query()
    items = newest_first(items)
    filtered = filter_content(items, query)
    page = paginate(filtered, query.page, query.per_page)

    return render_template(
        'dashboard/grid.html',
        title=title,
        page=page,
        query=query,
        empty_message=empty_message,
        create_endpoint=create_endpoint,
        show_status=show_status,
        stats=status_counts(items, 'status', ContentItem.VALID_STATUSES) if show_status else None,
        status_options=ContentItem.VALID_STATUSES,
        category_options=unique_values(items, 'category_label'),
        author_options=unique_values(items, 'author_email'),
        **card_context(page.items)
    )


def _own_items(content_type: str, drafts: bool) -> List[ContentItem]:
    """The current user's items of one type, drafts or everything else."""
    api = get_api()
    if drafts:
        items = api.list_content(content_type, status=ContentItem.STATUS_DRAFT)
    else:
        items = [i for i in api.list_content(content_type) if not i.is_draft]
    return [i for i in items if i.is_owned_by(current_user.id)]


def _can_manage(item: ContentItem) -> bool:
    return current_user.is_admin or item.is_owned_by(current_user.id)


def _detail_url(item: ContentItem, anchor: Optional[str] = None) -> str:
    return url_for('dashboard.content_detail', content_type=item.content_type,
                   content_id=item.id, _anchor=anchor)


# ============================================================================
# Content Grids
# ============================================================================

@dashboard_bp.route('/')
@login_required
def index():
    return redirect(url_for('dashboard.explore'))


@dashboard_bp.route('/explore')
@login_required
def explore():
    """
    Published content of every type.

    Shared links point here with ?id=<content id>, which opens that
    item's detail page.
    """
    api = get_api()
    content_id = request.args.get('id')
    if content_id:
        item = api.find_content(content_id)
        if item is None:
            flash('That content is no longer available', 'error')
            return redirect(url_for('dashboard.explore'))
        return redirect(_detail_url(item))

    items = [i for i in api.list_content() if i.status in VISIBLE_STATUSES]
    return render_content_grid('Explore', items, 'Nothing has been published yet')


@dashboard_bp.route('/posts')
@login_required
def posts():
    items = get_api().list_content(ContentItem.TYPE_POST, status=ContentItem.STATUS_PUBLISHED)
    create = 'dashboard.new_post' if current_user.can_author else None
    return render_content_grid('Posts', items, 'No posts yet', create_endpoint=create)


@dashboard_bp.route('/posts/drafts')
@login_required
@role_required(*AUTHOR_ROLES)
def post_drafts():
    return render_content_grid('Post Drafts', _own_items(ContentItem.TYPE_POST, drafts=True),
                               'You have no post drafts', create_endpoint='dashboard.new_post')


@dashboard_bp.route('/research')
@login_required
def research():
    """The current user's research, with its approval status."""
    return render_content_grid('My Research', _own_items(ContentItem.TYPE_RESEARCH, drafts=False),
                               'You have not submitted any research',
                               create_endpoint='dashboard.new_research', show_status=True)


@dashboard_bp.route('/research/drafts')
@login_required
def research_drafts():
    return render_content_grid('Research Drafts', _own_items(ContentItem.TYPE_RESEARCH, drafts=True),
                               'You have no research drafts', create_endpoint='dashboard.new_research')


def _saved_grid(title: str, saved, empty_message: str):
    """Join bookmark or read-later records with the content they point at."""
    wanted = {s.content_id for s in saved}
    items = [i for i in get_api().list_content() if i.id in wanted]
    return render_content_grid(title, items, empty_message)


@dashboard_bp.route('/bookmarks')
@login_required
def bookmarks():
    return _saved_grid('Bookmarks', get_api().bookmarks(), 'You have no bookmarks')


@dashboard_bp.route('/read-later')
@login_required
def read_later():
    return _saved_grid('Read Later', get_api().read_later(), 'Your read-later list is empty')


@dashboard_bp.route('/search')
@login_required
def search():
    """Site-wide search across all content types."""
    q = (request.args.get('q') or '').strip()
    content_type = request.args.get('type') or None
    category = request.args.get('category') or None
    tags = [t for t in request.args.getlist('tags') if t]

    results = []
    if q or category or tags:
        results = get_api().search(q, content_type=content_type, category=category, tags=tags)

    if wants_json():
        return jsonify({'results': [item.to_dict() for item in results]})
    return render_content_grid(f'Search: {q}' if q else 'Search', results, 'No results found')


# ============================================================================
# Content Detail, Comments and Share
# ============================================================================

@dashboard_bp.route('/content/<content_type>/<content_id>')
@login_required
def content_detail(content_type, content_id):
    """Content detail with tags, references, votes, comments and diagram."""
    api = get_api()
    item = _load_content(content_type, content_id)

    if item.is_draft and not _can_manage(item):
        abort(404)

    tree = build_comment_tree(api.comments(item.id))

    diagram_svg = None
    if item.is_mindmap:
        try:
            diagram_svg = render_svg(Diagram.from_data(item.excalidraw_data))
        except DiagramError as e:
            logger.warning(f"Mindmap {item.id} has unreadable diagram data: {e}")

    return render_template(
        'dashboard/detail.html',
        item=item,
        tags=api.content_tags(item.id),
        references=api.references(item.id),
        votes=api.votes(item.id),
        comments=tree,
        comment_total=count_comments(tree),
        diagram_svg=diagram_svg,
        can_manage=_can_manage(item),
        reply_to=request.args.get('reply_to'),
        **card_context([item])
    )


@dashboard_bp.route('/content/<content_type>/<content_id>/comments', methods=['POST'])
@login_required
def add_comment(content_type, content_id):
    """Post a comment, or a reply to a top-level comment."""
    api = get_api()
    item = _load_content(content_type, content_id)
    parent_id = request.form.get('parent_id') or None

    try:
        tree = build_comment_tree(api.comments(item.id))
        text = validate_comment(request.form.get('text'), parent_id, tree)
        comment = api.add_comment(item.id, text, parent_id)
    except CommentValidationError as e:
        if wants_json():
            return jsonify({'error': str(e)}), 400
        flash(str(e), 'error')
        return redirect(_detail_url(item, 'comments'))
    except ApiError as e:
        logger.error(f"Failed to add comment to {item.id}: {e.message}")
        if wants_json():
            return jsonify({'error': e.message}), e.status_code or 500
        flash(e.message, 'error')
        return redirect(_detail_url(item, 'comments'))

    if wants_json():
        return jsonify({'comment': comment.to_dict() if comment else None}), 201
    flash('Reply posted' if parent_id else 'Comment posted', 'success')
    return redirect(_detail_url(item, 'comments'))


@dashboard_bp.route('/content/<content_type>/<content_id>/share')
@login_required
def share(content_type, content_id):
    item = _load_content(content_type, content_id)
    url = share_url(current_app.config['BASE_URL'], item.id)
    return render_template(
        'dashboard/share.html',
        item=item,
        url=url,
        targets=share_links(url, item.title, item.content_type,
                            facebook_app_id=current_app.config.get('FACEBOOK_APP_ID')),
    )


# ============================================================================
# Card Actions
# ============================================================================

def _action_done(message: str, category: str = 'success', status: int = 200, **payload):
    """Finish a card action: JSON for fetch callers, flash + redirect otherwise."""
    if wants_json():
        key = 'error' if category == 'error' else 'message'
        return jsonify({key: message, **payload}), status
    flash(message, category)
    return redirect_back('dashboard.explore')


@dashboard_bp.route('/content/<content_id>/bookmark', methods=['POST'])
@login_required
def toggle_bookmark(content_id):
    api = get_api()
    try:
        existing = index_by_content(api.bookmarks()).get(content_id)
        if existing:
            api.remove_bookmark(existing.id)
            return _action_done('Bookmark removed', bookmarked=False)
        api.add_bookmark(content_id)
    except ApiError as e:
        logger.error(f"Bookmark toggle failed for {content_id}: {e.message}")
        return _action_done(e.message, 'error', e.status_code or 500)
    return _action_done('Bookmarked', bookmarked=True)


@dashboard_bp.route('/content/<content_id>/read-later', methods=['POST'])
@login_required
def toggle_read_later(content_id):
    api = get_api()
    try:
        existing = index_by_content(api.read_later()).get(content_id)
        if existing:
            api.remove_read_later(existing.id)
            return _action_done('Removed from read later', read_later=False)
        api.add_read_later(content_id)
    except ApiError as e:
        logger.error(f"Read-later toggle failed for {content_id}: {e.message}")
        return _action_done(e.message, 'error', e.status_code or 500)
    return _action_done('Saved for later', read_later=True)


@dashboard_bp.route('/content/<content_id>/vote', methods=['POST'])
@login_required
def vote(content_id):
    """Like or dislike. Repeating the same vote removes it."""
    api = get_api()
    vote_type = request.form.get('vote_type') or (request.get_json(silent=True) or {}).get('vote_type')
    try:
        message = api.vote(content_id, vote_type)
        counts = api.votes(content_id)
    except ValueError as e:
        return _action_done(str(e), 'error', 400)
    except ApiError as e:
        logger.error(f"Vote failed for {content_id}: {e.message}")
        return _action_done(e.message, 'error', e.status_code or 500)
    return _action_done(message or 'Vote recorded', **counts)


@dashboard_bp.route('/content/<content_id>/request-approval', methods=['POST'])
@login_required
def request_approval(content_id):
    try:
        get_api().request_approval(content_id)
    except ApiError as e:
        logger.error(f"Approval request failed for {content_id}: {e.message}")
        return _action_done(e.message, 'error', e.status_code or 500)
    logger.info(f"User {current_user.email} requested approval for research {content_id}")
    return _action_done('Submitted for approval')


@dashboard_bp.route('/content/<content_type>/<content_id>/delete', methods=['GET', 'POST'])
@login_required
def delete_content(content_type, content_id):
    """Confirm page (GET) and delete (POST). Also drops the user's bookmark."""
    api = get_api()
    item = _load_content(content_type, content_id)
    if not _can_manage(item):
        abort(403)

    grid_endpoint, drafts_endpoint = GRID_ENDPOINTS[item.content_type]
    back = drafts_endpoint if item.is_draft else grid_endpoint

    if request.method == 'GET':
        next_url = request.args.get('next')
        cancel_url = next_url if is_safe_next_url(next_url) else _detail_url(item)
        return render_template('dashboard/delete_confirm.html', item=item, cancel_url=cancel_url)

    try:
        api.delete_content(item.content_type, item.id)
        bookmark = index_by_content(api.bookmarks()).get(item.id)
        if bookmark:
            api.remove_bookmark(bookmark.id)
    except ApiError as e:
        logger.error(f"Failed to delete {item.content_type} {item.id}: {e.message}")
        flash(f'Could not delete "{item.title}": {e.message}', 'error')
        return redirect(_detail_url(item))

    logger.info(f"User {current_user.email} deleted {item.content_type} {item.id}")
    flash(f'"{item.title}" deleted', 'success')
    return redirect(url_for(back))


# ============================================================================
# Post and Research Editor
# ============================================================================

def _form_references() -> List[str]:
    """One reference per non-empty line."""
    seen = []
    for line in (request.form.get('references') or '').splitlines():
        line = line.strip()
        if line and line not in seen:
            seen.append(line)
    return seen


def _publish_status(content_type: str, as_draft: bool) -> str:
    if as_draft:
        return ContentItem.STATUS_DRAFT
    if content_type == ContentItem.TYPE_RESEARCH:
        return ContentItem.STATUS_PENDING_APPROVAL
    return ContentItem.STATUS_PUBLISHED


def sync_tags(api, content_id: str, tag_ids: List[str]) -> None:
    """Add and remove content tags so the item carries exactly tag_ids."""
    current = {tag.id for tag in api.content_tags(content_id)}
    wanted = set(tag_ids)
    for tag_id in wanted - current:
        api.add_content_tag(content_id, tag_id)
    for tag_id in current - wanted:
        api.remove_content_tag(content_id, tag_id)


def _content_form(content_type: str, content_id: Optional[str] = None):
    """Shared create/edit handler for posts and research."""
    api = get_api()
    item = None
    if content_id:
        item = _load_content(content_type, content_id)
        if not _can_manage(item):
            abort(403)

    categories = api.categories()
    tags = api.tags()
    form = request.form if request.method == 'POST' else None

    def render(status=200):
        existing_refs = [r.text for r in api.references(item.id)] if item else []
        return render_template(
            'dashboard/editor.html',
            content_type=content_type,
            item=item,
            form=form,
            categories=categories,
            tags=tags,
            selected_tags=(form.getlist('tag_ids') if form is not None
                           else [t.id for t in api.content_tags(item.id)] if item else []),
            references='\n'.join(_form_references() if form is not None else existing_refs),
            reference_suggestions=api.reference_texts(),
        ), status

    if request.method == 'GET':
        return render()

    title = (form.get('title') or '').strip()
    category_id = form.get('category_id') or None
    tag_ids = [t for t in form.getlist('tag_ids') if t]
    as_draft = form.get('action') == 'draft'

    if not title:
        flash('Title is required', 'error')
        return render(400)

    payload = {
        'title': title,
        'content_body': form.get('content_body') or '',
        'description': (form.get('description') or '').strip(),
        'category_id': category_id,
        'status': _publish_status(content_type, as_draft),
    }

    try:
        if item is None:
            payload['tag_ids'] = tag_ids
            saved = api.create_content(content_type, payload)
            old_refs = []
        else:
            saved = api.update_content(content_type, item.id, payload) or item
            sync_tags(api, item.id, tag_ids)
            old_refs = [r.text for r in api.references(item.id)]
        for text in _form_references():
            if text not in old_refs:
                api.add_reference(saved.id, text)
    except ApiError as e:
        logger.error(f"Failed to save {content_type}: {e.message}")
        flash(e.message, 'error')
        return render(e.status_code if e.status_code and e.status_code < 500 else 400)

    verb = 'updated' if item else 'created'
    logger.info(f"User {current_user.email} {verb} {content_type} {saved.id} as {payload['status']}")

    grid_endpoint, drafts_endpoint = GRID_ENDPOINTS[content_type]
    if as_draft:
        flash('Draft saved', 'success')
        return redirect(url_for(drafts_endpoint))
    if payload['status'] == ContentItem.STATUS_PENDING_APPROVAL:
        flash('Research submitted for approval', 'success')
    else:
        flash(f'{content_type.capitalize()} {verb}', 'success')
    return redirect(url_for(grid_endpoint))


@dashboard_bp.route('/posts/new', methods=['GET', 'POST'])
@login_required
@role_required(*AUTHOR_ROLES)
def new_post():
    return _content_form(ContentItem.TYPE_POST)


@dashboard_bp.route('/posts/<content_id>/edit', methods=['GET', 'POST'])
@login_required
@role_required(*AUTHOR_ROLES)
def edit_post(content_id):
    return _content_form(ContentItem.TYPE_POST, content_id)


@dashboard_bp.route('/research/new', methods=['GET', 'POST'])
@login_required
def new_research():
    return _content_form(ContentItem.TYPE_RESEARCH)


@dashboard_bp.route('/research/<content_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_research(content_id):
    return _content_form(ContentItem.TYPE_RESEARCH, content_id)


# ============================================================================
# Tag and Category Requests
# ============================================================================

@dashboard_bp.route('/requests/<kind>', methods=['GET', 'POST'])
@login_required
def taxonomy_request(kind):
    """Ask admins to add a tag or category."""
    if kind not in ('tag', 'category'):
        abort(404)

    if request.method == 'POST':
        name = (request.form.get('name') or '').strip()
        description = (request.form.get('description') or '').strip()
        if not name:
            flash(f'{kind.capitalize()} name is required', 'error')
            return render_template('dashboard/request_form.html', kind=kind,
                                   description=description), 400

        api = get_api()
        try:
            if kind == 'tag':
                api.request_tag(name, description)
            else:
                api.request_category(name, description)
        except ApiError as e:
            flash(e.message, 'error')
            return render_template('dashboard/request_form.html', kind=kind, name=name,
                                   description=description), e.status_code or 500

        logger.info(f"User {current_user.email} requested {kind} '{name}'")
        flash(f'{kind.capitalize()} "{name}" submitted for approval', 'success')
        return redirect_back('dashboard.explore')

    return render_template('dashboard/request_form.html', kind=kind)


# ============================================================================
# Pickers (JSON)
# ============================================================================

@dashboard_bp.route('/pickers/tags')
@login_required
def tag_picker():
    try:
        page = max(1, int(request.args.get('page', 1)))
    except ValueError:
        page = 1
    items, has_more = get_api().search_tags(request.args.get('q', ''), page=page)
    return jsonify({
        'items': [{'id': t.id, 'name': t.name} for t in items],
        'hasMore': has_more,
    })


@dashboard_bp.route('/pickers/categories')
@login_required
def category_picker():
    items = get_api().search_categories(request.args.get('q', ''))
    return jsonify({'items': [{'id': c.id, 'name': c.name} for c in items]})


@dashboard_bp.route('/pickers/references')
@login_required
def reference_picker():
    try:
        page = max(1, int(request.args.get('page', 1)))
    except ValueError:
        page = 1
    items, has_more = get_api().search_references(request.args.get('q', ''), page=page)
    return jsonify({'items': items, 'hasMore': has_more})
