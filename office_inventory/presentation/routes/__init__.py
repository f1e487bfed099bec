"""
Routes package for the office inventory engine
"""

from office_inventory.logger import get_logger

logger = get_logger("office_inventory.routes")


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    from office_inventory import csrf
    from .api import api

    logger.debug("Initializing route blueprints")
    app.register_blueprint(api, url_prefix='/api')
    csrf.exempt(api)
