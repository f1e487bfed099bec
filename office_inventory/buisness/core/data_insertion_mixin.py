"""
Generic serialization mixin for SQLAlchemy models
Provides to_dict so routes and services never walk columns themselves.
"""

from datetime import date, datetime
from sqlalchemy import inspect


class DataInsertionMixin:
    """
    Mixin that provides generic data conversion for SQLAlchemy models

    This mixin adds:
    - to_dict(): Convert model instance to dictionary
    """

    # Columns never exposed through to_dict
    _private_columns = ()

    def to_dict(self, include_audit_fields=True):
        """
        Convert model instance to dictionary

        Args:
            include_audit_fields (bool): Whether to include audit fields

        Returns:
            dict: Dictionary representation of the model
        """
        result = {}
        mapper = inspect(self.__class__)

        for column in mapper.columns:
            if column.key in self._private_columns:
                continue
            if not include_audit_fields and column.key in ('created_at', 'updated_at', 'created_by_id', 'updated_by_id'):
                continue

            value = getattr(self, column.key)
            if isinstance(value, (date, datetime)):
                result[column.key] = value.isoformat()
            else:
                result[column.key] = value

        return result
