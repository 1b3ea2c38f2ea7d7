"""Catalog persistence module (DynamoDB)."""

from .repository import CatalogStore, DynamoDBCatalogStore, clear_store_cache, get_catalog_store

__all__ = [
    "CatalogStore",
    "DynamoDBCatalogStore",
    "get_catalog_store",
    "clear_store_cache",
]
