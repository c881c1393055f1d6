"""
WSGI Entry Point for the DevBunker Portal.

This module provides the WSGI application object for production deployment
with gunicorn or other WSGI servers.

Usage:
    gunicorn -w 4 -b 0.0.0.0:5005 devbunker.wsgi:application
"""

from devbunker.app import create_app

# Create the application instance
application = create_app()

# Alias for compatibility
app = application

if __name__ == "__main__":
    application.run(host=application.config['HOST'], port=application.config['PORT'])
