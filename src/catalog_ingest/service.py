"""Parse-and-upsert cycle for catalog text sections."""

from dataclasses import dataclass

from aws_lambda_powertools import Logger

from ..catalog_parser.text_parser import parse_catalog_text
from ..catalog_store.repository import CatalogStore
from ..shared.exceptions import CatalogStoreError
from ..shared.models import Anime, IngestionReport
from .metadata import MetadataEnricher

logger = Logger(service="catalog-ingest")


@dataclass(frozen=True)
class CatalogSection:
    """One catalog text source and whether it lists airing titles."""

    text: str
    is_airing: bool
    source: str = "inline"


def parse_sections(sections: list[CatalogSection]) -> list[Anime]:
    """Parse every section in order and concatenate the results."""
    animes: list[Anime] = []
    for section in sections:
        logger.info(
            "Parsing catalog section",
            extra={"source": section.source, "is_airing": section.is_airing},
        )
        animes.extend(parse_catalog_text(section.text, section.is_airing))
    return animes


def ingest_catalog(
    sections: list[CatalogSection],
    store: CatalogStore,
    enricher: MetadataEnricher | None = None,
) -> IngestionReport:
    """Parse catalog sections and upsert every record by id.

    Upserts run sequentially. A failed write is logged and counted; it does
    not stop the remaining records. When two sections produce the same id,
    the record written last wins.

    Args:
        sections: Catalog text sources
        store: Catalog store collaborator
        enricher: Optional metadata enricher applied before writing

    Returns:
        IngestionReport with created/updated/failed counts
    """
    animes = parse_sections(sections)
    if enricher is not None:
        animes = enricher.enrich(animes)

    report = IngestionReport(total=len(animes))

    for anime in animes:
        try:
            created = store.upsert_by_id(anime.id, anime)
        except CatalogStoreError as e:
            logger.error(
                "Failed to upsert catalog record",
                extra={"anime_id": anime.id, "error": e.to_dict()},
            )
            report.failed += 1
            report.failed_ids.append(anime.id)
            continue

        if created:
            report.created += 1
        else:
            report.updated += 1

    logger.info("Catalog ingestion finished", extra={"report": report.model_dump()})
    return report
