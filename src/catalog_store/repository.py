"""Catalog persistence backed by DynamoDB.

Each Anime is one item keyed by ``id`` and stored in its camelCase JSON
shape (seasons and episodes nested as lists of maps). Writes replace the
whole item with a single PutItem, which DynamoDB applies atomically.
"""

import json
from decimal import Decimal
from functools import lru_cache
from typing import Any, Protocol

from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError
from pydantic import ValidationError as PydanticValidationError

from ..shared.aws_clients import get_dynamodb_resource, retry_with_backoff
from ..shared.config import get_settings
from ..shared.exceptions import CatalogStoreError
from ..shared.models import Anime

logger = Logger(service="catalog-store")


class CatalogStore(Protocol):
    """Read/write contract the catalog core needs from persistence."""

    def find_by_id(self, anime_id: str) -> Anime | None: ...

    def upsert_by_id(self, anime_id: str, anime: Anime) -> bool: ...

    def list_by_airing_flag(self, is_airing: bool) -> list[Anime]: ...


def _to_item(anime: Anime) -> dict[str, Any]:
    """Serialize an Anime into a DynamoDB item (floats become Decimal)."""
    payload = anime.model_dump_json(by_alias=True)
    return json.loads(payload, parse_float=Decimal)


def _from_item(item: dict[str, Any]) -> Anime:
    """Load a DynamoDB item (numbers arrive as Decimal) into an Anime."""

    def _plain_number(value: Decimal) -> int | float:
        return int(value) if value == value.to_integral_value() else float(value)

    normalized = json.loads(json.dumps(item, default=_plain_number))
    return Anime.model_validate(normalized)


class DynamoDBCatalogStore:
    """CatalogStore implementation over a DynamoDB table.

    Args:
        table: boto3 Table resource; defaults to the configured catalog table
    """

    def __init__(self, table: Any | None = None) -> None:
        if table is None:
            table = get_dynamodb_resource().Table(get_settings().catalog_table)
        self.table = table

    def find_by_id(self, anime_id: str) -> Anime | None:
        """Fetch one catalog record.

        Args:
            anime_id: Anime slug

        Returns:
            Anime or None if no item exists under that id

        Raises:
            CatalogStoreError: If the read fails or the item is malformed
        """
        try:
            response = retry_with_backoff(
                lambda: self.table.get_item(Key={"id": anime_id}, ConsistentRead=True)
            )
        except ClientError as e:
            raise CatalogStoreError(
                f"Failed to read catalog record: {e}",
                {"anime_id": anime_id, "table": self.table.name},
            )

        item = response.get("Item")
        if item is None:
            return None
        return self._load(item)

    def upsert_by_id(self, anime_id: str, anime: Anime) -> bool:
        """Insert or fully replace a catalog record.

        Args:
            anime_id: Key to write under; must equal anime.id
            anime: Complete record from a parse run

        Returns:
            True if the record was created, False if it replaced an existing one

        Raises:
            CatalogStoreError: If the key does not match or the write fails
        """
        if anime_id != anime.id:
            raise CatalogStoreError(
                "Upsert key does not match record id",
                {"key": anime_id, "anime_id": anime.id},
            )

        try:
            response = retry_with_backoff(
                lambda: self.table.put_item(Item=_to_item(anime), ReturnValues="ALL_OLD")
            )
        except ClientError as e:
            raise CatalogStoreError(
                f"Failed to write catalog record: {e}",
                {"anime_id": anime_id, "table": self.table.name},
            )

        created = "Attributes" not in response
        logger.debug(
            "Upserted catalog record",
            extra={"anime_id": anime_id, "is_new": created, "seasons": len(anime.seasons)},
        )
        return created

    def list_by_airing_flag(self, is_airing: bool) -> list[Anime]:
        """List every record with the given airing flag.

        Scans the table page by page; results are sorted by name.

        Raises:
            CatalogStoreError: If the scan fails or an item is malformed
        """
        scan_kwargs: dict[str, Any] = {"FilterExpression": Attr("isAiring").eq(is_airing)}
        items: list[dict[str, Any]] = []

        try:
            while True:
                response = retry_with_backoff(lambda: self.table.scan(**scan_kwargs))
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            raise CatalogStoreError(
                f"Failed to list catalog records: {e}",
                {"is_airing": is_airing, "table": self.table.name},
            )

        animes = [self._load(item) for item in items]
        return sorted(animes, key=lambda a: (a.name.lower(), a.id))

    @staticmethod
    def _load(item: dict[str, Any]) -> Anime:
        try:
            return _from_item(item)
        except PydanticValidationError as e:
            raise CatalogStoreError(
                "Catalog record failed validation",
                {"anime_id": item.get("id"), "errors": e.errors(include_url=False)},
            )


@lru_cache(maxsize=1)
def get_catalog_store() -> DynamoDBCatalogStore:
    """Get the cached store for the configured catalog table."""
    return DynamoDBCatalogStore()


def clear_store_cache() -> None:
    """Clear the cached store.

    Useful for testing when mocking needs to be reset.
    """
    get_catalog_store.cache_clear()
