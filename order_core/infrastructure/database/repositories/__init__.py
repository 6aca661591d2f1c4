from .sqlalchemy_order_repository import SQLAlchemyOrderRepository

__all__ = ["SQLAlchemyOrderRepository"]
