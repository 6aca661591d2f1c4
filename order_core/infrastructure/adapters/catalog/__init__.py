from .in_memory_catalog import InMemoryCatalogSource

__all__ = ["InMemoryCatalogSource"]
