#!/usr/bin/env python3
"""
Run script for the Office Inventory engine
"""

import argparse
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from office_inventory import create_app
from office_inventory.build import build_database
from office_inventory.logger import get_logger

# Note: SECRET_KEY and the initial admin PIN come from the environment.
# Run 'python generate_env.py' to create a .env file.

app = create_app()
logger = get_logger("office_inventory.run")


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Office Inventory')
    parser.add_argument('--build-only', action='store_true',
                        help='Create tables and the initial admin, then exit without starting the server')
    parser.add_argument('--host', default=os.environ.get('FLASK_HOST', '127.0.0.1'),
                        help='Interface to bind (default: FLASK_HOST or 127.0.0.1)')
    parser.add_argument('--port', type=int, default=int(os.environ.get('FLASK_PORT', '5000')),
                        help='Port to listen on (default: FLASK_PORT or 5000)')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_arguments()

    logger.debug("Starting Office Inventory...")

    with app.app_context():
        build_database()

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    debug = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')
    use_reloader = os.environ.get('USE_RELOADER', 'False').lower() in ('true', '1', 'yes', 'on')
    logger.debug(f"Access the application at: http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=debug, use_reloader=use_reloader)
