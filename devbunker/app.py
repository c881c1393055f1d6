"""
Flask Application Factory for the DevBunker Portal.

This module provides the create_app() factory function that creates and
configures the Flask application. It initializes:
- Flask-Login session handling (the REST API issues the tokens)
- Blueprint registration
- Error handlers (HTML pages, or JSON for fetch callers)
- Logging configuration
- Template filters and globals

Usage:
    # Development
    python -m devbunker.app

    # Production
    gunicorn -w 4 -b 0.0.0.0:5005 'devbunker.app:create_app()'
"""

import logging
import os
import sys
from datetime import datetime
from typing import Optional

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for
from flask.logging import default_handler
from flask_login import LoginManager, current_user

from devbunker.api.errors import ApiError, ApiUnavailableError, AuthenticationError
from devbunker.config import get_config
from devbunker.services.grid import GRID_ARGS
from devbunker.utils.auth import end_session, home_endpoint_for, load_session_user
from devbunker.utils.web import format_date, format_time_ago, wants_json


login_manager = LoginManager()


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name ('development', 'testing', 'production').
                    If None, reads from FLASK_ENV environment variable.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Load configuration
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    config_class.init_app(app)

    # Initialize Flask-Login
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Please log in to continue'
    login_manager.login_message_category = 'error'
    login_manager.user_loader(load_session_user)

    # Configure logging
    _configure_logging(app)

    # Register blueprints
    _register_blueprints(app)

    # Register error handlers
    _register_error_handlers(app)

    # Register template filters and globals
    _register_template_helpers(app)

    @app.route('/')
    def index():
        if current_user.is_authenticated:
            return redirect(url_for(home_endpoint_for(current_user)))
        return redirect(url_for('auth.login'))

    @app.route('/health')
    def health_check():
        """Health check endpoint for monitoring."""
        return jsonify({
            'status': 'healthy',
            'service': 'devbunker-portal',
            'api_base_url': app.config['API_BASE_URL'],
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        })

    return app


def _configure_logging(app: Flask) -> None:
    """
    Configure application logging.

    Always logs to stdout; in debug mode also logs to logs/devbunker.log.

    Args:
        app: Flask application instance.
    """
    log_format = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # app.logger is 'devbunker.app', so handlers on the package logger
    # also cover devbunker.api.client, devbunker.services.bulk, ...
    app.logger.removeHandler(default_handler)
    package_logger = logging.getLogger('devbunker')
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(logging.INFO)
    stream_handler.setFormatter(log_format)
    package_logger.addHandler(stream_handler)

    if app.config.get('DEBUG', False) and not app.config.get('TESTING', False):
        log_dir = os.path.join(str(app.config.get('BASE_DIR', os.getcwd())), 'logs')
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(os.path.join(log_dir, 'devbunker.log'))
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(log_format)
            package_logger.addHandler(file_handler)
        except (OSError, PermissionError):
            # Log path not writable, skip file logging
            pass

    log_level = logging.DEBUG if app.config.get('DEBUG', False) else logging.INFO
    app.logger.setLevel(log_level)
    package_logger.setLevel(log_level)


def _register_blueprints(app: Flask) -> None:
    """
    Register page blueprints with the application.

    - /auth for login, registration and password reset
    - /dashboard for content grids, detail pages and card actions
    - /dashboard/mindmaps for the mindmap editor
    - /account for settings and notifications
    - /admin for moderation

    Args:
        app: Flask application instance.
    """
    from devbunker.routes import account_bp, admin_bp, auth_bp, dashboard_bp, mindmaps_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')
    app.register_blueprint(mindmaps_bp, url_prefix='/dashboard/mindmaps')
    app.register_blueprint(account_bp, url_prefix='/account')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.logger.debug('Registered auth, dashboard, mindmaps, account and admin blueprints')


_ERROR_TITLES = {
    400: ('Bad Request', 'Invalid request'),
    401: ('Unauthorized', 'Please log in to continue'),
    403: ('Forbidden', 'You do not have permission to view this page'),
    404: ('Not Found', 'The requested resource was not found'),
    405: ('Method Not Allowed', 'The method is not allowed for this resource'),
    413: ('File Too Large', 'File size exceeds the maximum allowed limit'),
    500: ('Internal Server Error', 'An unexpected error occurred'),
    502: ('Bad Gateway', 'The DevBunker API returned an error'),
    503: ('Service Unavailable', 'The DevBunker API is not reachable right now'),
}


def _error_response(code: int, message: Optional[str] = None):
    title, default_message = _ERROR_TITLES.get(code, ('Error', 'An unexpected error occurred'))
    message = message or default_message
    if wants_json():
        return jsonify({
            'status': 'error',
            'error': title,
            'message': message
        }), code
    return render_template('errors/error.html', code=code, title=title, message=message), code


def _register_error_handlers(app: Flask) -> None:
    """
    Register error handlers for HTTP errors and API failures.

    Args:
        app: Flask application instance.
    """
    @app.errorhandler(AuthenticationError)
    def api_authentication_error(error):
        # Token expired or revoked on the API side
        app.logger.info(f'API rejected session token: {error.message}')
        end_session()
        if wants_json():
            return _error_response(401, error.message)
        flash('Your session has expired. Please log in again.', 'error')
        return redirect(url_for('auth.login', next=request.full_path))

    @app.errorhandler(ApiUnavailableError)
    def api_unavailable(error):
        app.logger.error(f'API unavailable: {error.message}')
        return _error_response(503)

    @app.errorhandler(ApiError)
    def api_error(error):
        # API failures a route did not handle itself
        code = error.status_code if error.status_code in _ERROR_TITLES else 502
        app.logger.error(f'Unhandled API error {error.status_code}: {error.message}')
        return _error_response(code, error.message)

    @app.errorhandler(400)
    def bad_request(error):
        return _error_response(400, getattr(error, 'description', None))

    @app.errorhandler(401)
    def unauthorized(error):
        return _error_response(401)

    @app.errorhandler(403)
    def forbidden(error):
        return _error_response(403)

    @app.errorhandler(404)
    def not_found(error):
        return _error_response(404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _error_response(405)

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return _error_response(413)

    @app.errorhandler(500)
    def internal_server_error(error):
        return _error_response(500)


def _register_template_helpers(app: Flask) -> None:
    """
    Register template filters and globals.

    Args:
        app: Flask application instance.
    """
    app.add_template_filter(format_time_ago, 'time_ago')
    app.add_template_filter(format_date, 'date')

    @app.template_global()
    def grid_url(query, **overrides):
        """URL of the current grid page with the query's filters and overrides."""
        values = dict(request.view_args or {})
        values.update((k, v) for k, v in request.args.lists() if k not in GRID_ARGS)
        values.update(query.to_args(**overrides))
        return url_for(request.endpoint, **values)

    @app.context_processor
    def inject_settings():
        return {
            'search_debounce_ms': app.config['SEARCH_DEBOUNCE_MS'],
            'per_page_options': app.config['PER_PAGE_OPTIONS'],
        }


if __name__ == '__main__':
    application = create_app()
    application.run(host=application.config['HOST'], port=application.config['PORT'])
