#!/usr/bin/env python3
"""Issue stream tokens for catalog episodes.

This script signs a short-lived stream token for an episode reference, the
same token the API returns from POST /api/stream/token. Useful for testing
the stream endpoint or handing out a one-off playback link.

Usage:
    python issue-stream-token.py --reference naruto-1-1

    # Build the reference from its parts
    python issue-stream-token.py --anime-id one-piece --season 1 --episode 1000

    # With custom lifetime (default comes from STREAM_TOKEN_TTL_SECONDS or 300)
    python issue-stream-token.py --reference naruto-1-1 --ttl 60

    # Check an existing token
    python issue-stream-token.py --verify <token>

The signing secret is read from --secret or the STREAM_TOKEN_SECRET
environment variable.
"""

import argparse
import json
import os
import sys
from datetime import datetime, timezone

from src.shared.exceptions import CatalogServiceError
from src.shared.models import StreamTokenConfig
from src.stream_access.reference import encode_reference
from src.stream_access.tokens import StreamTokenService


def build_reference(args: argparse.Namespace) -> str:
    """Return the reference from --reference or from its parts."""
    if args.reference:
        return args.reference
    return encode_reference(args.anime_id, args.season, args.episode)


def main():
    parser = argparse.ArgumentParser(
        description="Issue or verify stream tokens for catalog episodes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Issue a token for a reference
  %(prog)s --reference naruto-1-1

  # Issue a token from reference parts, JSON output
  %(prog)s --anime-id one-piece --season 1 --episode 1000 --json

  # Verify a token
  %(prog)s --verify eyJyZWYiOiJuYXJ1dG8tMS0xIi...
        """
    )

    parser.add_argument(
        "--reference",
        help="Episode reference (e.g., naruto-1-1)"
    )
    parser.add_argument(
        "--anime-id",
        help="Anime slug (used with --season and --episode)"
    )
    parser.add_argument(
        "--season",
        type=int,
        help="Season number"
    )
    parser.add_argument(
        "--episode",
        type=int,
        help="Episode number"
    )
    parser.add_argument(
        "--verify",
        metavar="TOKEN",
        help="Verify a token and print its reference instead of issuing one"
    )
    parser.add_argument(
        "--secret",
        default=os.environ.get("STREAM_TOKEN_SECRET", ""),
        help="Signing secret (default: STREAM_TOKEN_SECRET)"
    )
    parser.add_argument(
        "--ttl",
        type=int,
        default=int(os.environ.get("STREAM_TOKEN_TTL_SECONDS", "300")),
        help="Token lifetime in seconds (default: 300)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format"
    )

    args = parser.parse_args()

    # Validate arguments
    if not args.verify and not args.reference:
        if not args.anime_id or args.season is None or args.episode is None:
            print("Error: provide --reference or all of --anime-id, --season and --episode")
            sys.exit(1)

    if args.ttl < 1:
        print("Error: --ttl must be at least 1 second")
        sys.exit(1)

    service = StreamTokenService(StreamTokenConfig(secret=args.secret, ttl_seconds=args.ttl))

    try:
        if args.verify:
            reference = service.verify(args.verify)
            if args.json:
                print(json.dumps({"valid": True, "reference": reference}, indent=2))
            else:
                print(f"Valid token for reference: {reference}")
            return

        issued = service.issue(build_reference(args))
    except CatalogServiceError as e:
        if args.json:
            print(json.dumps({"valid": False, **e.to_dict()}, indent=2))
        else:
            print(f"Error: {e.message}")
        sys.exit(1)

    expires = datetime.fromtimestamp(issued.expires_at, tz=timezone.utc)

    if args.json:
        print(json.dumps({
            "token": issued.token,
            "expires": expires.isoformat(),
            "expires_in_seconds": issued.expires_in_seconds,
        }, indent=2))
    else:
        print("\nStream Token:")
        print("-" * 60)
        print(issued.token)
        print("-" * 60)
        print(f"\nExpires: {expires.isoformat()}")
        print(f"Header: Authorization: Bearer {issued.token}")


if __name__ == "__main__":
    main()
