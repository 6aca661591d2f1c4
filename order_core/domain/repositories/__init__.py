"""Repository interfaces."""
from .order_repository import OrderFilter, OrderMutator, OrderPage, OrderRepository, OrderSort

__all__ = ["OrderFilter", "OrderMutator", "OrderPage", "OrderRepository", "OrderSort"]
