"""SQLAlchemy persistence for orders."""
from .lifecycle import create_schema, drop_schema, make_session_factory
from .repositories.sqlalchemy_order_repository import SQLAlchemyOrderRepository

__all__ = [
    "create_schema",
    "drop_schema",
    "make_session_factory",
    "SQLAlchemyOrderRepository",
]
