"""Unit tests for stream access module."""

import base64
import json

import pytest

from src.shared.exceptions import (
    ConfigurationError,
    InvalidTokenError,
    MalformedReferenceError,
    NotFoundError,
    ValidationError,
)
from src.shared.models import Anime, Episode, Season, StreamTokenConfig
from src.stream_access.reference import decode_reference, encode_reference
from src.stream_access.resolver import EpisodeResolver
from src.stream_access.tokens import StreamTokenService


class InMemoryCatalogStore:
    """Dict-backed catalog store for resolver tests."""

    def __init__(self, animes: list[Anime] | None = None) -> None:
        self.items = {a.id: a for a in animes or []}
        self.lookups: list[str] = []

    def find_by_id(self, anime_id: str) -> Anime | None:
        self.lookups.append(anime_id)
        return self.items.get(anime_id)

    def upsert_by_id(self, anime_id: str, anime: Anime) -> bool:
        created = anime_id not in self.items
        self.items[anime_id] = anime
        return created

    def list_by_airing_flag(self, is_airing: bool) -> list[Anime]:
        return [a for a in self.items.values() if a.is_airing == is_airing]


def make_anime(anime_id: str = "one-piece", name: str = "One Piece") -> Anime:
    return Anime(
        id=anime_id,
        name=name,
        year=1999,
        day="Domingo",
        is_airing=True,
        seasons=[
            Season(
                season_number=1,
                episodes=[
                    Episode(
                        episode_number=1000,
                        name="Episodio 1000",
                        video_url="https://cdn.example.com/op/1x1000.mp4",
                        file_name="1x1000.mp4",
                    ),
                ],
            ),
        ],
    )


class TestReferenceCodec:
    """Tests for episode reference encoding and decoding."""

    def test_encode(self):
        """Test the '<animeId>-<season>-<episode>' layout."""
        assert encode_reference("naruto", 1, 1) == "naruto-1-1"

    def test_decode_hyphenated_anime_id(self):
        """Test ids containing '-' survive decoding."""
        key = decode_reference("one-piece-1-1000")

        assert key.anime_id == "one-piece"
        assert key.season_number == 1
        assert key.episode_number == 1000

    @pytest.mark.parametrize(
        "anime_id, season, episode",
        [
            ("naruto", 1, 1),
            ("one-piece", 1, 1000),
            ("re-zero-starting-life-in-another-world", 3, 16),
            ("86", 2, 0),
        ],
    )
    def test_round_trip(self, anime_id: str, season: int, episode: int):
        """Test decode(encode(x)) == x for slug ids."""
        key = decode_reference(encode_reference(anime_id, season, episode))

        assert (key.anime_id, key.season_number, key.episode_number) == (anime_id, season, episode)

    def test_decode_does_not_require_padding(self):
        """Test numbers are parsed as plain integers."""
        key = decode_reference("naruto-01-007")

        assert key.season_number == 1
        assert key.episode_number == 7

    @pytest.mark.parametrize(
        "reference",
        [
            "naruto",
            "naruto-1",
            "-1-1",
            "naruto-x-1",
            "naruto-1-",
            "naruto-1-1.5",
            "naruto-1-٣",
            "",
        ],
    )
    def test_decode_malformed(self, reference: str):
        """Test malformed references are rejected."""
        with pytest.raises(MalformedReferenceError) as exc_info:
            decode_reference(reference)

        assert exc_info.value.error_code == "MALFORMED_REFERENCE"
        assert exc_info.value.details["reference"] == reference

    def test_encode_rejects_empty_id(self):
        """Test encoding requires an anime id."""
        with pytest.raises(ValidationError):
            encode_reference("", 1, 1)

    def test_encode_rejects_negative_numbers(self):
        """Test encoding rejects negative season or episode."""
        with pytest.raises(ValidationError):
            encode_reference("naruto", -1, 1)


class TestStreamTokenService:
    """Tests for stream token issuing and verification."""

    def test_issue_then_verify(self, token_service: StreamTokenService):
        """Test verify returns the exact reference that was issued."""
        issued = token_service.issue("one-piece-1-1000")

        assert issued.expires_in_seconds == 300
        assert issued.expires_at == issued.issued_at + 300
        assert token_service.verify(issued.token) == "one-piece-1-1000"

    def test_reference_is_opaque_to_issue(self, token_service: StreamTokenService):
        """Test issue does not decode the reference."""
        issued = token_service.issue("not a reference at all")

        assert token_service.verify(issued.token) == "not a reference at all"

    def test_token_shape(self, token_service: StreamTokenService, fake_clock):
        """Test claims segment carries ref, iat and exp."""
        issued = token_service.issue("naruto-1-1")
        claims_segment, signature = issued.token.split(".")

        padding = "=" * (-len(claims_segment) % 4)
        claims = json.loads(base64.urlsafe_b64decode(claims_segment + padding))

        assert claims == {
            "ref": "naruto-1-1",
            "iat": int(fake_clock.now),
            "exp": int(fake_clock.now) + 300,
        }
        assert signature
        assert "=" not in issued.token

    def test_valid_just_before_expiry(self, token_service: StreamTokenService, fake_clock):
        """Test a token verifies right up to its TTL."""
        issued = token_service.issue("naruto-1-1")
        fake_clock.advance(299.9)

        assert token_service.verify(issued.token) == "naruto-1-1"

    def test_expired_at_exactly_ttl(self, token_service: StreamTokenService, fake_clock):
        """Test a token is rejected once TTL seconds have elapsed."""
        issued = token_service.issue("naruto-1-1")
        fake_clock.advance(300)

        with pytest.raises(InvalidTokenError) as exc_info:
            token_service.verify(issued.token)

        assert "expired" in exc_info.value.message

    def test_repeated_redemption(self, token_service: StreamTokenService, fake_clock):
        """Test verification does not consume the token."""
        issued = token_service.issue("naruto-1-1")

        for _ in range(5):
            fake_clock.advance(10)
            assert token_service.verify(issued.token) == "naruto-1-1"

    def test_custom_ttl(self, token_config: StreamTokenConfig, fake_clock):
        """Test the configured TTL drives expiry."""
        service = StreamTokenService(StreamTokenConfig(secret=token_config.secret, ttl_seconds=60), clock=fake_clock)
        issued = service.issue("naruto-1-1")

        assert issued.expires_in_seconds == 60
        fake_clock.advance(60)
        with pytest.raises(InvalidTokenError):
            service.verify(issued.token)

    def test_tampered_claims_rejected(self, token_service: StreamTokenService):
        """Test swapping the claims segment breaks the signature."""
        issued = token_service.issue("naruto-1-1")
        other = token_service.issue("naruto-1-2")

        forged = ".".join([other.token.split(".")[0], issued.token.split(".")[1]])
        with pytest.raises(InvalidTokenError):
            token_service.verify(forged)

    def test_tampered_signature_rejected(self, token_service: StreamTokenService):
        """Test a modified signature is rejected."""
        issued = token_service.issue("naruto-1-1")
        claims_segment, signature = issued.token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

        with pytest.raises(InvalidTokenError):
            token_service.verify(f"{claims_segment}.{flipped}")

    def test_other_secret_rejected(self, token_service: StreamTokenService, fake_clock):
        """Test tokens signed with another secret do not verify."""
        issued = token_service.issue("naruto-1-1")
        other = StreamTokenService(StreamTokenConfig(secret="z" * 40), clock=fake_clock)

        with pytest.raises(InvalidTokenError):
            other.verify(issued.token)

    @pytest.mark.parametrize(
        "token",
        ["", "garbage", "a.b.c", ".sig", "claims.", "ünïcode.sig", "e30.\ud800"],
    )
    def test_malformed_tokens_rejected(self, token_service: StreamTokenService, token: str):
        """Test structurally invalid tokens raise InvalidTokenError."""
        with pytest.raises(InvalidTokenError) as exc_info:
            token_service.verify(token)

        assert exc_info.value.error_code == "INVALID_TOKEN"

    def test_issue_rejects_empty_reference(self, token_service: StreamTokenService):
        """Test issue requires a reference."""
        with pytest.raises(ValidationError):
            token_service.issue("")
        with pytest.raises(ValidationError):
            token_service.issue("   ")

    @pytest.mark.parametrize("secret", ["", "too-short"])
    def test_weak_secret_is_configuration_error(self, secret: str, fake_clock):
        """Test missing or short secrets fail on both operations."""
        service = StreamTokenService(StreamTokenConfig(secret=secret), clock=fake_clock)

        with pytest.raises(ConfigurationError):
            service.issue("naruto-1-1")
        with pytest.raises(ConfigurationError):
            service.verify("anything.at-all")

    def test_secret_not_in_repr(self, token_config: StreamTokenConfig):
        """Test the signing secret never shows up in reprs."""
        assert token_config.secret not in repr(token_config)


class TestEpisodeResolver:
    """Tests for resolving references against the catalog."""

    def test_resolve(self):
        """Test a known reference resolves to its video URL."""
        store = InMemoryCatalogStore([make_anime()])

        resolved = EpisodeResolver(store).resolve("one-piece-1-1000")

        assert resolved.video_url == "https://cdn.example.com/op/1x1000.mp4"
        assert resolved.anime_name == "One Piece"
        assert resolved.episode_number == 1000
        assert store.lookups == ["one-piece"]

    def test_missing_anime(self):
        """Test unknown anime ids report the anime stage."""
        with pytest.raises(NotFoundError) as exc_info:
            EpisodeResolver(InMemoryCatalogStore()).resolve("bleach-1-1")

        assert exc_info.value.resource == "anime"
        assert exc_info.value.error_code == "NOT_FOUND"

    def test_missing_season(self):
        """Test unknown seasons report the season stage."""
        store = InMemoryCatalogStore([make_anime()])

        with pytest.raises(NotFoundError) as exc_info:
            EpisodeResolver(store).resolve("one-piece-2-1")

        assert exc_info.value.resource == "season"

    def test_missing_episode(self):
        """Test unknown episodes report the episode stage."""
        store = InMemoryCatalogStore([make_anime()])

        with pytest.raises(NotFoundError) as exc_info:
            EpisodeResolver(store).resolve("one-piece-1-999")

        assert exc_info.value.resource == "episode"

    def test_malformed_reference_skips_store(self):
        """Test undecodable references never reach the store."""
        store = InMemoryCatalogStore([make_anime()])

        with pytest.raises(MalformedReferenceError):
            EpisodeResolver(store).resolve("one-piece")

        assert store.lookups == []

    def test_token_to_video_url(self, token_service: StreamTokenService):
        """Test issue, verify and resolve chained together."""
        store = InMemoryCatalogStore([make_anime()])
        issued = token_service.issue(encode_reference("one-piece", 1, 1000))

        resolved = EpisodeResolver(store).resolve(token_service.verify(issued.token))

        assert resolved.video_url.endswith("1x1000.mp4")
