"""
Authentication Web Routes

Blueprint for login, registration, logout and password reset. Credentials
are checked by the REST API; the portal only keeps the returned token in
the session.
"""

import logging
import re

from flask import Blueprint, current_app, flash, redirect, render_template, request, session, url_for
from flask_login import current_user, login_required

from devbunker.api.errors import ApiError, ConflictError
from devbunker.utils.auth import end_session, get_api, home_endpoint_for, start_session
from devbunker.utils.web import is_safe_next_url


logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)

RESET_EMAIL_KEY = 'reset_email'
RESET_VERIFIED_KEY = 'reset_verified'

_EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
_PIN_PATTERN = re.compile(r'^\d{4}$')


def _clean_email(value):
    return (value or '').strip().lower()


def _password_error(password, confirm=None):
    """Return an error message for an unacceptable new password, else None."""
    min_length = current_app.config['PASSWORD_MIN_LENGTH']
    if not password:
        return 'Password is required'
    if len(password) < min_length:
        return f'Password must be at least {min_length} characters long'
    if confirm is not None and password != confirm:
        return 'Passwords do not match'
    return None


# ============================================================================
# Login / Logout / Register
# ============================================================================

@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Login page - handles both display and form submission."""
    if current_user.is_authenticated:
        return redirect(url_for(home_endpoint_for(current_user)))

    if request.method == 'POST':
        email = _clean_email(request.form.get('email'))
        password = request.form.get('password', '')
        remember = request.form.get('remember_me') in ['on', '1', 'true']

        if not email or not password:
            flash('Email and password are required', 'error')
            return render_template('auth/login.html', email=email), 400

        try:
            token, user_data = get_api().login(email, password)
            user = start_session(token, user_data, remember=remember)
        except (ApiError, ValueError) as e:
            logger.info(f"Login failed for {email}: {e}")
            flash(str(e) or 'Invalid email or password', 'error')
            return render_template('auth/login.html', email=email), 401

        next_url = request.args.get('next')
        if is_safe_next_url(next_url):
            return redirect(next_url)
        return redirect(url_for(home_endpoint_for(user)))

    return render_template('auth/login.html')


@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    """Create a consumer account."""
    if current_user.is_authenticated:
        return redirect(url_for(home_endpoint_for(current_user)))

    if request.method == 'POST':
        email = _clean_email(request.form.get('email'))
        password = request.form.get('password', '')
        confirm = request.form.get('confirm_password', '')

        error = None
        if not _EMAIL_PATTERN.match(email):
            error = 'A valid email address is required'
        else:
            error = _password_error(password, confirm)
        if error:
            flash(error, 'error')
            return render_template('auth/register.html', email=email), 400

        try:
            get_api().register(email, password)
        except ConflictError:
            flash('An account with this email already exists', 'error')
            return render_template('auth/register.html', email=email), 409
        except ApiError as e:
            flash(e.message, 'error')
            return render_template('auth/register.html', email=email), e.status_code

        logger.info(f"Registered new account {email}")
        flash('Account created. You can now log in.', 'success')
        return redirect(url_for('auth.login'))

    return render_template('auth/register.html')


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    try:
        get_api().logout()
    except ApiError as e:
        logger.warning(f"API logout failed for {current_user.email}: {e.message}")
    end_session()
    flash('You have been logged out', 'success')
    return redirect(url_for('auth.login'))


# ============================================================================
# Password Reset (email -> 4-digit PIN -> new password)
# ============================================================================

@auth_bp.route('/password-reset', methods=['GET', 'POST'])
def password_reset():
    """
    Start a password reset.

    'pin' (default) emails a 4-digit PIN and continues to the PIN page.
    'link' emails a reset link that lands on /auth/reset?email=...
    """
    if request.method == 'POST':
        email = _clean_email(request.form.get('email'))
        method = request.form.get('method', 'pin')

        if not _EMAIL_PATTERN.match(email):
            flash('A valid email address is required', 'error')
            return render_template('auth/password_reset.html', email=email), 400

        try:
            if method == 'link':
                get_api().send_reset_link(email)
                flash('If an account exists for this email, a reset link has been sent', 'success')
                return redirect(url_for('auth.login'))
            get_api().generate_pin(email)
        except ApiError as e:
            flash(e.message, 'error')
            return render_template('auth/password_reset.html', email=email), e.status_code

        session[RESET_EMAIL_KEY] = email
        session.pop(RESET_VERIFIED_KEY, None)
        flash('A 4-digit PIN has been sent to your email', 'success')
        return redirect(url_for('auth.verify_pin'))

    return render_template('auth/password_reset.html', email=request.args.get('email', ''))


@auth_bp.route('/verify-pin', methods=['GET', 'POST'])
def verify_pin():
    email = session.get(RESET_EMAIL_KEY)
    if not email:
        flash('Enter your email to receive a PIN first', 'error')
        return redirect(url_for('auth.password_reset'))

    if request.method == 'POST':
        pin = (request.form.get('pin') or '').strip()
        if not _PIN_PATTERN.match(pin):
            flash('The PIN is 4 digits', 'error')
            return render_template('auth/verify_pin.html', email=email), 400
        try:
            get_api().verify_pin(email, pin)
        except ApiError as e:
            flash(e.message, 'error')
            return render_template('auth/verify_pin.html', email=email), 400

        session[RESET_VERIFIED_KEY] = True
        return redirect(url_for('auth.reset_password'))

    return render_template('auth/verify_pin.html', email=email)


@auth_bp.route('/reset', methods=['GET', 'POST'])
def reset_password():
    """
    Set a new password once the PIN is verified.

    Reset links arrive here with ?email=; without a verified PIN a PIN is
    generated for that email and the user is sent to the PIN page.
    """
    email = session.get(RESET_EMAIL_KEY)
    link_email = _clean_email(request.args.get('email'))

    if not session.get(RESET_VERIFIED_KEY) or (link_email and link_email != email):
        if link_email and _EMAIL_PATTERN.match(link_email):
            try:
                get_api().generate_pin(link_email)
            except ApiError as e:
                flash(e.message, 'error')
                return redirect(url_for('auth.password_reset', email=link_email))
            session[RESET_EMAIL_KEY] = link_email
            session.pop(RESET_VERIFIED_KEY, None)
            flash('A 4-digit PIN has been sent to your email', 'success')
            return redirect(url_for('auth.verify_pin'))
        return redirect(url_for('auth.password_reset'))

    if request.method == 'POST':
        password = request.form.get('password', '')
        error = _password_error(password, request.form.get('confirm_password', ''))
        if error:
            flash(error, 'error')
            return render_template('auth/reset.html', email=email), 400
        try:
            get_api().reset_password(email, password)
        except ApiError as e:
            flash(e.message, 'error')
            return render_template('auth/reset.html', email=email), e.status_code

        session.pop(RESET_EMAIL_KEY, None)
        session.pop(RESET_VERIFIED_KEY, None)
        logger.info(f"Password reset completed for {email}")
        flash('Password reset successfully. You can now log in.', 'success')
        return redirect(url_for('auth.login'))

    return render_template('auth/reset.html', email=email)
