"""Catalog ingestion module for the anime catalog service.

This module handles:
- Parse-and-upsert runs over catalog text sections
- Optional throttled metadata enrichment
- Lambda handler for S3 trigger
"""

from .metadata import JikanMetadataProvider, MetadataEnricher, default_metadata
from .service import CatalogSection, ingest_catalog, parse_sections

__all__ = [
    "CatalogSection",
    "ingest_catalog",
    "parse_sections",
    "JikanMetadataProvider",
    "MetadataEnricher",
    "default_metadata",
]
