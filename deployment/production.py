#!/usr/bin/env python3
"""
Production deployment for Mockup Composer.

Provides the WSGI application, a requirements check and a Waitress
server entry point.
"""

import os
import sys
from pathlib import Path
from typing import List

from loguru import logger


def create_production_app():
    """Create production Flask application with proper configuration."""
    # Set production environment
    os.environ['FLASK_ENV'] = 'production'

    # Import after setting environment
    from mockup_composer import create_app

    config = {
        'DEBUG': False,
        'TESTING': False,
        'SECRET_KEY': os.environ.get('SECRET_KEY', 'production-secret-key-change-me'),
        'LOG_FILE': os.environ.get('LOG_FILE', '/var/log/mockup_composer/app.log'),
        'LOG_LEVEL': os.environ.get('LOG_LEVEL', 'INFO'),
    }

    Path(config['LOG_FILE']).parent.mkdir(parents=True, exist_ok=True)
    return create_app(config)


def check_production_requirements() -> List[str]:
    """Check that production requirements are met."""
    errors = []

    if sys.version_info < (3, 9):
        errors.append("Python 3.9 or higher required")

    required_env_vars = ['SECRET_KEY']
    for var in required_env_vars:
        if not os.environ.get(var):
            errors.append(f"Environment variable {var} is required")

    # JPEG support must be compiled into Pillow for capture/guide encoding
    from PIL import features
    if not features.check('jpg'):
        errors.append("Pillow was built without JPEG support")

    return errors


if __name__ == '__main__':
    errors = check_production_requirements()
    if errors:
        print("❌ Production requirements not met:")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)

    print("✅ Production requirements check passed")

    from waitress import serve

    app = create_production_app()
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', '8000'))
    threads = int(os.environ.get('THREADS', '4'))

    logger.info(f"Starting Mockup Composer on {host}:{port} ({threads} threads)")

    try:
        serve(
            app,
            host=host,
            port=port,
            threads=threads,
            channel_timeout=120,
            cleanup_interval=30,
            connection_limit=1000,
            url_scheme='https' if os.environ.get('HTTPS', '').lower() == 'true' else 'http'
        )
    except KeyboardInterrupt:
        print("\n👋 Shutting down gracefully...")
