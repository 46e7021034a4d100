"""
Mockup Composer - Flask Application Factory
Places design images onto product photos and builds the guide images
sent to the mockup generator
"""

import os
from pathlib import Path
from flask import Flask
from loguru import logger
from dotenv import load_dotenv

from .config import CompositionSettings, load_config

__version__ = "0.3.0"


def create_app(config_overrides=None):
    """Flask application factory"""

    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    # Load configuration
    environment = os.getenv('FLASK_ENV', 'development')
    config = load_config(environment, overrides=config_overrides)
    app.config.update(config.model_dump())
    app.config['MAX_CONTENT_LENGTH'] = config.MAX_UPLOAD_SIZE
    app.extensions['mockup_composer'] = CompositionSettings.from_config(config)
    if config_overrides:
        app.config.update(config_overrides)

    # Configure logging
    setup_logging(app)

    # Register blueprints
    from . import routes
    app.register_blueprint(routes.bp)

    logger.info(f"Mockup Composer {__version__} initialized in {environment} mode")

    return app


def setup_logging(app):
    """Configure loguru logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO')
    log_file = app.config.get('LOG_FILE', 'logs/app.log')

    # Ensure logs directory exists
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        rotation="1 day",
        retention="30 days",
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )
