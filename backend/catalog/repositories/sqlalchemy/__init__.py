"""
SQLAlchemy Repository Implementation Module Initialization
"""

from catalog.repositories.sqlalchemy.product_store import SQLAlchemyProductStore

__all__ = [
    "SQLAlchemyProductStore",
]
