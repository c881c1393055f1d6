"""
Mindmap Web Routes

Mindmap grids and the editor. The editor page posts each operation
(add node, rename, connect, ...) with the current diagram state to
/operations, which applies it and returns the new state plus an SVG
preview. Save and draft serialize the diagram as element data into
'excalidraw_data'.
"""

import logging
import re

from flask import Blueprint, Response, abort, flash, jsonify, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from devbunker.api.errors import ApiError, NotFoundError
from devbunker.models import ContentItem
from devbunker.models.user import AUTHOR_ROLES
from devbunker.routes.dashboard import render_content_grid, sync_tags
from devbunker.services.diagram import (
    EDGE_TYPES, NODE_TYPES, PALETTE, Diagram, DiagramError, apply_operation, render_svg
)
from devbunker.utils.auth import get_api, role_required
from devbunker.utils.web import wants_json


logger = logging.getLogger(__name__)

mindmaps_bp = Blueprint('mindmaps', __name__)


def _load_mindmap(content_id: str) -> ContentItem:
    try:
        item = get_api().get_content(ContentItem.TYPE_MINDMAP, content_id)
    except NotFoundError:
        abort(404)
    if not (current_user.is_admin or item.is_owned_by(current_user.id)):
        abort(403)
    return item


def _posted_diagram(data) -> Diagram:
    """The diagram sent by the editor, as a dict or a JSON string."""
    return Diagram.from_data(data.get('diagram') or None)


def _export_name(title: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', (title or '').lower()).strip('-')
    return f"{slug or 'mindmap'}.svg"


def _svg_download(diagram: Diagram, title: str) -> Response:
    return Response(
        render_svg(diagram, background='#ffffff'),
        mimetype='image/svg+xml',
        headers={'Content-Disposition': f'attachment; filename="{_export_name(title)}"'},
    )


# ============================================================================
# Grids
# ============================================================================

@mindmaps_bp.route('/')
@login_required
def index():
    items = get_api().list_content(ContentItem.TYPE_MINDMAP, status=ContentItem.STATUS_PUBLISHED)
    create = 'mindmaps.new' if current_user.can_author else None
    return render_content_grid('Mindmaps', items, 'No mindmaps yet', create_endpoint=create)


@mindmaps_bp.route('/drafts')
@login_required
@role_required(*AUTHOR_ROLES)
def drafts():
    items = get_api().list_content(ContentItem.TYPE_MINDMAP, status=ContentItem.STATUS_DRAFT)
    items = [i for i in items if i.is_owned_by(current_user.id)]
    return render_content_grid('Mindmap Drafts', items, 'You have no mindmap drafts',
                               create_endpoint='mindmaps.new')


# ============================================================================
# Editor
# ============================================================================

def _render_editor(item=None, diagram=None):
    api = get_api()
    diagram = diagram or (Diagram.from_data(item.excalidraw_data) if item else Diagram.default())
    return render_template(
        'mindmaps/editor.html',
        item=item,
        diagram=diagram.to_flow(),
        svg=render_svg(diagram),
        categories=api.categories(),
        tags=api.tags(),
        selected_tags=[t.id for t in api.content_tags(item.id)] if item else [],
        palette=PALETTE,
        node_types=NODE_TYPES,
        edge_types=EDGE_TYPES,
    )


@mindmaps_bp.route('/new')
@login_required
@role_required(*AUTHOR_ROLES)
def new():
    return _render_editor()


@mindmaps_bp.route('/<content_id>/edit')
@login_required
@role_required(*AUTHOR_ROLES)
def edit(content_id):
    item = _load_mindmap(content_id)
    try:
        return _render_editor(item)
    except DiagramError as e:
        logger.warning(f"Mindmap {item.id} has unreadable diagram data, starting over: {e}")
        flash('The saved diagram could not be read; starting from a new diagram', 'error')
        return _render_editor(item, Diagram.default())


@mindmaps_bp.route('/operations', methods=['POST'])
@login_required
@role_required(*AUTHOR_ROLES)
def operations():
    """
    Apply one editor operation.

    Request JSON: {diagram: {nodes, edges}, op: 'add_node', args: {...}}
    Response JSON: {diagram: {nodes, edges}, svg: '<svg ...>'}
    """
    data = request.get_json(silent=True) or {}
    try:
        diagram = _posted_diagram(data)
        apply_operation(diagram, data.get('op', ''), data.get('args') or {})
    except DiagramError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({'diagram': diagram.to_flow(), 'svg': render_svg(diagram)})


@mindmaps_bp.route('/save', methods=['POST'])
@mindmaps_bp.route('/<content_id>/save', methods=['POST'])
@login_required
@role_required(*AUTHOR_ROLES)
def save(content_id=None):
    """
    Save (publish) or save as draft.

    Accepts the editor form or JSON. Title and category are required.
    """
    api = get_api()
    data = request.get_json(silent=True) if request.is_json else request.form
    data = data or {}
    item = _load_mindmap(content_id) if content_id else None

    title = (data.get('title') or '').strip()
    category_id = data.get('category_id') or None
    as_draft = data.get('action') == 'draft' or data.get('status') == ContentItem.STATUS_DRAFT
    if hasattr(data, 'getlist'):
        tag_ids = [t for t in data.getlist('tag_ids') if t]
    else:
        tag_ids = [t for t in data.get('tag_ids') or [] if t]

    def fail(message, status=400):
        if wants_json():
            return jsonify({'error': message}), status
        flash(message, 'error')
        return redirect(url_for('mindmaps.edit', content_id=item.id) if item else url_for('mindmaps.new'))

    if not title:
        return fail('Title is required')
    if not category_id:
        return fail('Category is required')

    try:
        diagram = _posted_diagram(data)
    except DiagramError as e:
        return fail(str(e))

    previous = (item.excalidraw_data if item and isinstance(item.excalidraw_data, dict) else {}) or {}
    payload = {
        'title': title,
        'content_body': data.get('content_body') or '',
        'excalidraw_data': diagram.to_excalidraw(previous.get('appState'), previous.get('files')),
        'category_id': category_id,
        'tag_ids': tag_ids,
        'status': ContentItem.STATUS_DRAFT if as_draft else ContentItem.STATUS_PUBLISHED,
    }

    try:
        if item:
            api.update_content(ContentItem.TYPE_MINDMAP, item.id, payload)
            sync_tags(api, item.id, tag_ids)
        else:
            item = api.create_content(ContentItem.TYPE_MINDMAP, payload)
    except ApiError as e:
        logger.error(f"Failed to save mindmap '{title}': {e.message}")
        return fail(e.message, e.status_code or 500)

    logger.info(f"User {current_user.email} saved mindmap {item.id} as {payload['status']}")

    target = url_for('mindmaps.drafts') if as_draft else url_for('mindmaps.index')
    if wants_json():
        return jsonify({'id': item.id, 'status': payload['status'], 'redirect': target})
    flash('Draft saved' if as_draft else 'Mindmap saved', 'success')
    return redirect(target)


# ============================================================================
# Export
# ============================================================================

@mindmaps_bp.route('/export', methods=['POST'])
@login_required
def export():
    """Download the editor's current diagram as SVG."""
    data = request.get_json(silent=True) if request.is_json else request.form
    data = data or {}
    try:
        diagram = _posted_diagram(data)
    except DiagramError as e:
        return jsonify({'error': str(e)}), 400
    return _svg_download(diagram, data.get('title') or 'mindmap')


@mindmaps_bp.route('/<content_id>/export.svg')
@login_required
def export_saved(content_id):
    """Download a saved mindmap as SVG."""
    try:
        item = get_api().get_content(ContentItem.TYPE_MINDMAP, content_id)
    except NotFoundError:
        abort(404)
    if item.is_draft and not (current_user.is_admin or item.is_owned_by(current_user.id)):
        abort(404)
    try:
        diagram = Diagram.from_data(item.excalidraw_data)
    except DiagramError as e:
        logger.warning(f"Cannot export mindmap {item.id}: {e}")
        abort(400, description='This mindmap has no readable diagram')
    return _svg_download(diagram, item.title)
