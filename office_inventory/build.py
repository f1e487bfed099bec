#!/usr/bin/env python3
"""
Database build for the office inventory engine
Creates the tables and makes sure the critical data (an admin who can log in) exists.
"""

import os

from office_inventory import db
from office_inventory.logger import get_logger

logger = get_logger("office_inventory.build")

DEFAULT_ADMIN_NAME = 'Admin'
DEFAULT_ADMIN_PIN = '0000'


def verify_critical_data():
    """
    Check that at least one active admin exists.

    Returns:
        bool: True if an admin can log in, False otherwise
    """
    from office_inventory.data.core.user_info.user import User

    admin = User.query.filter_by(role=User.ROLE_ADMIN, is_active=True).first()
    if admin is None:
        logger.warning("No active admin user found")
        return False
    return True


def insert_critical_data():
    """Create the initial admin from ADMIN_NAME / ADMIN_PIN."""
    from office_inventory.buisness.core.user_context import UserContext
    from office_inventory.data.core.user_info.user import User

    name = os.environ.get('ADMIN_NAME', DEFAULT_ADMIN_NAME)
    pin = os.environ.get('ADMIN_PIN', DEFAULT_ADMIN_PIN)
    if pin == DEFAULT_ADMIN_PIN:
        logger.warning("ADMIN_PIN not set - using the default PIN. Change it after first login!")

    ctx = UserContext.create(None, name=name, pin=pin, role=User.ROLE_ADMIN)
    logger.info(f"Created initial admin user: {ctx.user.name} (ID: {ctx.user_id})")
    return ctx.user


def build_database(create_tables=True):
    """
    Build the database.

    Args:
        create_tables (bool): Create missing tables before checking data

    Critical data is ALWAYS checked and inserted regardless of flags.
    """
    if create_tables:
        logger.debug("Creating tables")
        db.create_all()
        logger.info("Database tables ready")

    if not verify_critical_data():
        insert_critical_data()

    logger.info("Database build complete")
