"""Short-lived stream tokens wrapping an episode reference.

Token layout (two URL-safe base64 segments, unpadded):

    <claims>.<signature>

- claims: compact JSON ``{"ref": <reference>, "iat": <issued>, "exp": <expires>}``
- signature: HMAC-SHA256(secret, claims segment)

Validity is purely time-derived: a token is valid while ``now < exp``.
Nothing is stored server-side, so verifying a token does not consume it and
the same token can be redeemed any number of times until it expires.
"""

import base64
import binascii
import hashlib
import hmac
import json
import time
from typing import Callable

from aws_lambda_powertools import Logger
from pydantic import ValidationError as PydanticValidationError

from ..shared.exceptions import ConfigurationError, InvalidTokenError, ValidationError
from ..shared.models import IssuedStreamToken, StreamTokenClaims, StreamTokenConfig

logger = Logger(service="stream-tokens")

MIN_SECRET_LENGTH = 32
TOKEN_SEGMENT_SEPARATOR = "."


def _b64encode(data: bytes) -> str:
    """Encode bytes as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64decode(segment: str) -> bytes:
    """Decode unpadded URL-safe base64."""
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)


class StreamTokenService:
    """Issue and verify stream tokens.

    Configuration is passed in explicitly and never read from globals.

    Example:
        >>> service = StreamTokenService(StreamTokenConfig(secret="x" * 32))
        >>> issued = service.issue("naruto-1-1")
        >>> service.verify(issued.token)
        'naruto-1-1'
    """

    def __init__(
        self,
        config: StreamTokenConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self._clock = clock

    def issue(self, reference: str) -> IssuedStreamToken:
        """Sign a token for an episode reference.

        Args:
            reference: Episode reference to embed (not decoded here)

        Returns:
            IssuedStreamToken with the token and its validity window

        Raises:
            ConfigurationError: If the secret is missing or too short
            ValidationError: If the reference is empty
        """
        secret = self._signing_key()
        if not reference or not reference.strip():
            raise ValidationError("Episode reference is required", {"field": "episodeId"})

        issued_at = int(self._clock())
        claims = StreamTokenClaims(
            reference=reference,
            issued_at=issued_at,
            expires_at=issued_at + self.config.ttl_seconds,
        )
        payload = json.dumps(claims.model_dump(by_alias=True), separators=(",", ":"))
        claims_segment = _b64encode(payload.encode("utf-8"))
        token = TOKEN_SEGMENT_SEPARATOR.join([claims_segment, self._sign(secret, claims_segment)])

        logger.info(
            "Issued stream token",
            extra={"reference": reference, "expires_at": claims.expires_at},
        )

        return IssuedStreamToken(
            token=token,
            expires_in_seconds=self.config.ttl_seconds,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )

    def verify(self, token: str) -> str:
        """Validate a token and return its embedded reference.

        Args:
            token: Token produced by issue()

        Returns:
            The reference exactly as it was issued

        Raises:
            ConfigurationError: If the secret is missing or too short
            InvalidTokenError: If the token is malformed, its signature does
                not match, or it has expired
        """
        secret = self._signing_key()
        claims = self._decode(secret, token)

        now = self._clock()
        if now >= claims.expires_at:
            raise InvalidTokenError(
                "Stream token has expired",
                {"expired_at": claims.expires_at},
            )
        return claims.reference

    def _signing_key(self) -> bytes:
        secret = self.config.secret
        if not secret:
            raise ConfigurationError("Stream token secret is not configured")
        if len(secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"Stream token secret must be at least {MIN_SECRET_LENGTH} characters",
                {"secret_length": len(secret), "min_length": MIN_SECRET_LENGTH},
            )
        return secret.encode("utf-8")

    @staticmethod
    def _sign(secret: bytes, claims_segment: str) -> str:
        digest = hmac.new(secret, claims_segment.encode("ascii"), hashlib.sha256).digest()
        return _b64encode(digest)

    def _decode(self, secret: bytes, token: str) -> StreamTokenClaims:
        if not token:
            raise InvalidTokenError("Stream token is empty")

        segments = token.split(TOKEN_SEGMENT_SEPARATOR)
        if len(segments) != 2 or not all(segments):
            raise InvalidTokenError("Stream token is malformed")
        claims_segment, signature = segments

        try:
            expected = self._sign(secret, claims_segment)
            matches = hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
        except UnicodeEncodeError:
            raise InvalidTokenError("Stream token is malformed")
        if not matches:
            raise InvalidTokenError("Stream token signature mismatch")

        try:
            payload = json.loads(_b64decode(claims_segment))
            return StreamTokenClaims.model_validate(payload)
        except (binascii.Error, ValueError, PydanticValidationError) as e:
            raise InvalidTokenError("Stream token claims are unreadable", {"error": str(e)})
