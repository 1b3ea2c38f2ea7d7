"""Lambda handler for ingesting catalog text files.

This Lambda is triggered by S3 PutObject events when a catalog text file is
uploaded to the catalog bucket.

Flow:
1. Receive S3 event
2. Download each catalog text file from the configured catalog bucket
3. Decide the section from the key ('airing' or 'finished')
4. Parse, optionally enrich, and upsert every record by id
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.data_classes import S3Event, event_source
from aws_lambda_powertools.utilities.typing import LambdaContext

from ..catalog_store.repository import get_catalog_store
from ..shared.aws_clients import get_s3_client
from ..shared.config import Settings, get_settings
from ..shared.rate_limiter import FixedIntervalRateLimiter
from .metadata import JikanMetadataProvider, MetadataEnricher
from .service import CatalogSection, ingest_catalog

# Initialize Powertools
logger = Logger(service="catalog-ingest")
tracer = Tracer(service="catalog-ingest")
metrics = Metrics(service="catalog-ingest", namespace="AnimeCatalog")


@logger.inject_lambda_context(log_event=True)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
@event_source(data_class=S3Event)
def handler(event: S3Event, context: LambdaContext) -> dict[str, Any]:
    """Process S3 event for catalog text uploads.

    Args:
        event: S3 PutObject event
        context: Lambda context

    Returns:
        Response with the ingestion report and skipped keys
    """
    settings = get_settings()
    s3_client = get_s3_client()

    sections: list[CatalogSection] = []
    skipped: list[str] = []

    for record in event.records:
        bucket = record.s3.bucket.name
        key = record.s3.get_object.key

        if settings.catalog_bucket and bucket != settings.catalog_bucket:
            logger.warning(
                "Event is not for the catalog bucket, skipping",
                extra={"bucket": bucket, "key": key, "catalog_bucket": settings.catalog_bucket},
            )
            skipped.append(key)
            continue

        is_airing = section_for_key(key)
        if is_airing is None:
            logger.warning(
                "Catalog key does not name a section, skipping",
                extra={"bucket": bucket, "key": key},
            )
            skipped.append(key)
            continue

        logger.info(
            "Downloading catalog text",
            extra={"bucket": bucket, "key": key, "is_airing": is_airing},
        )
        with tracer.provider.in_subsegment("download_catalog"):
            response = s3_client.get_object(Bucket=bucket, Key=key)
            # Undecodable bytes become U+FFFD and fall through the grammar as skipped lines
            text = response["Body"].read().decode("utf-8", errors="replace")

        sections.append(CatalogSection(text=text, is_airing=is_airing, source=f"s3://{bucket}/{key}"))

    report = ingest_catalog(
        sections=sections,
        store=get_catalog_store(),
        enricher=build_enricher(settings),
    )

    metrics.add_metric(name="CatalogRecordsCreated", unit=MetricUnit.Count, value=report.created)
    metrics.add_metric(name="CatalogRecordsUpdated", unit=MetricUnit.Count, value=report.updated)
    metrics.add_metric(name="CatalogRecordsFailed", unit=MetricUnit.Count, value=report.failed)

    return {
        "statusCode": 200,
        "body": json.dumps({
            "message": f"Ingested {report.total} anime from {len(sections)} section(s)",
            "report": report.model_dump(),
            "skipped_keys": skipped,
        }),
    }


def section_for_key(key: str) -> bool | None:
    """Map an object key to its catalog section.

    Returns:
        True for airing, False for finished, None if the key names neither
    """
    name = key.rsplit("/", 1)[-1].lower()
    if "airing" in name:
        return True
    if "finished" in name:
        return False
    return None


def build_enricher(settings: Settings) -> MetadataEnricher | None:
    """Build the metadata enricher when enrichment is enabled."""
    if not settings.enable_metadata_enrichment:
        return None
    return MetadataEnricher(
        provider=JikanMetadataProvider(settings.metadata_api_url),
        rate_limiter=FixedIntervalRateLimiter(settings.metadata_request_interval_seconds),
    )
