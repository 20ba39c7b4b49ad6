"""External services consumed by the pricing engine."""

from .index_client import IndexClient, get_index_client, get_index_table

__all__ = ["IndexClient", "get_index_client", "get_index_table"]
