"""
Account Web Routes

Settings (profile image, password change) and the notifications grid.
"""

import logging

from flask import Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from devbunker.api.errors import ApiError
from devbunker.services.grid import filter_notifications, newest_first, paginate, status_counts
from devbunker.utils.auth import get_api
from devbunker.utils.web import allowed_image, grid_query, redirect_back, wants_json


logger = logging.getLogger(__name__)

account_bp = Blueprint('account', __name__)


# ============================================================================
# Settings
# ============================================================================

@account_bp.route('/settings')
@login_required
def settings():
    return render_template(
        'account/settings.html',
        profile_image=get_api().profile_image(),
        password_min_length=current_app.config['PASSWORD_MIN_LENGTH'],
    )


@account_bp.route('/settings/profile-image', methods=['POST'])
@login_required
def upload_profile_image():
    """Upload a new profile image (multipart field 'image')."""
    image = request.files.get('image')
    if image is None or not image.filename:
        flash('Choose an image to upload', 'error')
        return redirect(url_for('account.settings'))

    allowed = current_app.config['ALLOWED_IMAGE_EXTENSIONS']
    if not allowed_image(image.filename, allowed):
        flash(f"Allowed image types: {', '.join(sorted(allowed))}", 'error')
        return redirect(url_for('account.settings'))

    try:
        url = get_api().upload_profile_image(image)
    except ApiError as e:
        logger.error(f"Profile image upload failed for {current_user.email}: {e.message}")
        flash(e.message, 'error')
        return redirect(url_for('account.settings'))

    logger.info(f"User {current_user.email} uploaded a profile image")
    if wants_json():
        return jsonify({'url': url})
    flash('Profile image updated', 'success')
    return redirect(url_for('account.settings'))


@account_bp.route('/settings/password', methods=['POST'])
@login_required
def change_password():
    old_password = request.form.get('old_password', '')
    new_password = request.form.get('new_password', '')
    confirm = request.form.get('confirm_password', '')
    min_length = current_app.config['PASSWORD_MIN_LENGTH']

    error = None
    if not old_password:
        error = 'Current password is required'
    elif len(new_password) < min_length:
        error = f'New password must be at least {min_length} characters long'
    elif new_password != confirm:
        error = 'New passwords do not match'
    elif new_password == old_password:
        error = 'New password must differ from the current one'
    if error:
        flash(error, 'error')
        return redirect(url_for('account.settings'))

    try:
        message = get_api().change_password(old_password, new_password)
    except ApiError as e:
        flash(e.message, 'error')
        return redirect(url_for('account.settings'))

    logger.info(f"User {current_user.email} changed their password")
    flash(message or 'Password changed', 'success')
    return redirect(url_for('account.settings'))


# ============================================================================
# Notifications
# ============================================================================

@account_bp.route('/notifications')
@login_required
def notifications():
    """Notifications grid with read/unread filter and stat boxes."""
    query = grid_query()
    items = newest_first(get_api().notifications())
    filtered = filter_notifications(items, query)
    page = paginate(filtered, query.page, query.per_page)

    return render_template(
        'account/notifications.html',
        page=page,
        query=query,
        stats=status_counts(items, 'read', ['read', 'unread']),
    )


@account_bp.route('/notifications/<notification_id>/read', methods=['POST'])
@login_required
def mark_read(notification_id):
    try:
        get_api().mark_notification_read(notification_id)
    except ApiError as e:
        if wants_json():
            return jsonify({'error': e.message}), e.status_code or 500
        flash(e.message, 'error')
        return redirect_back('account.notifications')

    if wants_json():
        return jsonify({'message': 'Notification marked as read'})
    return redirect_back('account.notifications')


@account_bp.route('/notifications/read-all', methods=['POST'])
@login_required
def mark_all_read():
    try:
        get_api().mark_all_notifications_read()
    except ApiError as e:
        flash(e.message, 'error')
        return redirect_back('account.notifications')

    flash('All notifications marked as read', 'success')
    return redirect_back('account.notifications')
