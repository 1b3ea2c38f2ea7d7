"""Lambda handler for the public catalog API.

Served behind an API Gateway REST proxy integration.

Routes:
    GET  /api/animes/<section>      Public listing (no video URLs)
    POST /api/stream/token          Issue a short-lived stream token
    GET  /api/stream/<episode_id>   Redeem a bearer token for the video URL
    GET  /api/health                Liveness probe

Every response carries CORS headers for the configured frontend origin and a
fixed set of security headers.
"""

import json
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, CORSConfig, Response, content_types
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from ..catalog_store.repository import get_catalog_store
from ..shared.config import get_settings
from ..shared.exceptions import (
    CatalogServiceError,
    CatalogStoreError,
    ConfigurationError,
    InvalidTokenError,
    MalformedReferenceError,
    NotFoundError,
    ValidationError,
)
from ..shared.models import AnimeSummary
from ..stream_access.resolver import EpisodeResolver
from ..stream_access.tokens import StreamTokenService

# Initialize Powertools
logger = Logger(service="catalog-api")
tracer = Tracer(service="catalog-api")
metrics = Metrics(service="catalog-api", namespace="AnimeCatalog")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'self'",
}

AIRING_SECTION = "airing"
INTERNAL_ERROR_CODE = "INTERNAL_ERROR"

app = APIGatewayRestResolver(
    cors=CORSConfig(
        allow_origin=get_settings().frontend_url,
        allow_credentials=True,
    ),
)


@lru_cache(maxsize=1)
def get_token_service() -> StreamTokenService:
    """Get the token service built from process settings."""
    return StreamTokenService(get_settings().stream_token_config)


def json_response(payload: dict[str, Any], status_code: int = 200) -> Response:
    """Build a JSON response with security headers."""
    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=json.dumps(payload, default=str),
        headers=dict(SECURITY_HEADERS),
    )


def error_response(error: CatalogServiceError, status_code: int, message: str | None = None) -> Response:
    """Build the standard error body for a service error."""
    return json_response(
        {
            "success": False,
            "error": message or error.message,
            "errorCode": error.error_code,
        },
        status_code=status_code,
    )


@app.get("/api/animes/<section>")
@tracer.capture_method
def list_animes(section: str) -> Response:
    """List airing or finished titles without video URLs."""
    is_airing = section == AIRING_SECTION
    animes = get_catalog_store().list_by_airing_flag(is_airing)
    data = [AnimeSummary.from_anime(a).model_dump(mode="json", by_alias=True) for a in animes]

    logger.info("Listed catalog", extra={"section": section, "count": len(data)})
    return json_response({"success": True, "data": data})


@app.post("/api/stream/token")
@tracer.capture_method
def issue_stream_token() -> Response:
    """Issue a stream token for the episode reference in the request body."""
    if not app.current_event.body:
        raise ValidationError("episodeId is required", {"field": "episodeId"})
    try:
        body = app.current_event.json_body
    except ValueError:
        raise ValidationError("Request body must be JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    episode_id = body.get("episodeId")
    if not isinstance(episode_id, str) or not episode_id:
        raise ValidationError("episodeId is required", {"field": "episodeId"})

    issued = get_token_service().issue(episode_id)
    metrics.add_metric(name="StreamTokensIssued", unit=MetricUnit.Count, value=1)

    return json_response({
        "success": True,
        "token": issued.token,
        "expiresInSeconds": issued.expires_in_seconds,
    })


@app.get("/api/stream/<episode_id>")
@tracer.capture_method
def redeem_stream_token(episode_id: str) -> Response:
    """Return the video URL for the episode embedded in the bearer token.

    The path segment is informational; the token's reference is what gets
    resolved.
    """
    token = _bearer_token()
    if token is None:
        return json_response({"success": False, "error": "Bearer token required"}, status_code=401)

    reference = get_token_service().verify(token)
    if reference != episode_id:
        logger.debug(
            "Path episode id differs from token reference",
            extra={"path_episode_id": episode_id, "reference": reference},
        )

    resolved = EpisodeResolver(get_catalog_store()).resolve(reference)
    metrics.add_metric(name="StreamTokensRedeemed", unit=MetricUnit.Count, value=1)

    payload = {"success": True}
    payload.update(resolved.model_dump(by_alias=True))
    return json_response(payload)


@app.get("/api/health")
def health() -> Response:
    """Liveness probe."""
    return json_response({
        "success": True,
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


def _bearer_token() -> str | None:
    header = app.current_event.get_header_value("Authorization", default_value="", case_sensitive=False) or ""
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@app.exception_handler(ValidationError)
def handle_validation_error(ex: ValidationError) -> Response:
    return error_response(ex, 400)


@app.exception_handler(MalformedReferenceError)
def handle_malformed_reference(ex: MalformedReferenceError) -> Response:
    return error_response(ex, 400)


@app.exception_handler(InvalidTokenError)
def handle_invalid_token(ex: InvalidTokenError) -> Response:
    metrics.add_metric(name="StreamTokensRejected", unit=MetricUnit.Count, value=1)
    return error_response(ex, 403, "Invalid or expired token")


@app.exception_handler(NotFoundError)
def handle_not_found(ex: NotFoundError) -> Response:
    return error_response(ex, 404)


@app.exception_handler(ConfigurationError)
def handle_configuration_error(ex: ConfigurationError) -> Response:
    logger.error("Service misconfigured", extra={"error": ex.to_dict()})
    return error_response(ex, 500, "Server configuration error")


@app.exception_handler(CatalogStoreError)
def handle_store_error(ex: CatalogStoreError) -> Response:
    logger.error("Catalog store failure", extra={"error": ex.to_dict()})
    return error_response(ex, 500, "Catalog unavailable")


@app.exception_handler(Exception)
def handle_unexpected_error(ex: Exception) -> Response:
    logger.exception("Unhandled error in catalog API")
    return json_response(
        {"success": False, "error": "Internal server error", "errorCode": INTERNAL_ERROR_CODE},
        status_code=500,
    )


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Route an API Gateway REST proxy event."""
    return app.resolve(event, context)
