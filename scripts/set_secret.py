"""CLI to write portal credentials or the service token into the key-value store.

Usage:
    uv run python scripts/set_secret.py --service-token
    uv run python scripts/set_secret.py --service-token --value existing-token
    uv run python scripts/set_secret.py --key comed:username --value someone@example.com
"""
import argparse
import secrets
import sys

from portalscrape.api.deps import SERVICE_TOKEN_KEY
from portalscrape.db.session import SessionLocal, init_db
from portalscrape.errors import StoreUnavailableError
from portalscrape.store import SqlKeyValueStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Store a secret in the portalscrape key-value store")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--key", help="Store key, e.g. comed:password")
    target.add_argument(
        "--service-token",
        action="store_true",
        help=f"Write the API bearer token ({SERVICE_TOKEN_KEY}); generated if --value is omitted",
    )
    parser.add_argument("--value", help="Secret value")
    args = parser.parse_args()

    if args.service_token:
        key = SERVICE_TOKEN_KEY
        value = args.value or secrets.token_urlsafe(32)
    else:
        if not args.value:
            parser.error("--value is required with --key")
        key, value = args.key, args.value

    init_db()
    try:
        SqlKeyValueStore(SessionLocal).put(key, value)
    except StoreUnavailableError as exc:
        print(f"Error: could not write {key}: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.service_token and not args.value:
        print(f"Service token stored under {key}: {value}")
    else:
        print(f"Stored {key}")


if __name__ == "__main__":
    main()
