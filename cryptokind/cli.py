"""
CryptoKind CLI: entry point for all operations.

Usage:
    cryptokind serve                  # Start the API server
    cryptokind migrate                # Create the database tables
    cryptokind migrate --check        # Check that the tables exist
    cryptokind keys list              # Show stored API keys (masked)
    cryptokind keys add KEY [--rate-limit N]
    cryptokind keys remove KEY
    cryptokind keys reset             # Zero usage counts
    cryptokind version                # Show version
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Tables that must exist for a working installation
REQUIRED_TABLES = [
    "activity_logs",
    "user_feedback",
]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cryptokind",
        description="CryptoKind: cached cryptocurrency market-data API.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: CRYPTOKIND_HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: CRYPTOKIND_PORT)")

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Run database migrations")
    migrate_parser.add_argument(
        "--dry-run", action="store_true", help="Print SQL without executing"
    )
    migrate_parser.add_argument(
        "--check", action="store_true", help="Check if required tables exist"
    )

    # keys
    keys_parser = subparsers.add_parser("keys", help="Manage market-data API keys")
    keys_sub = keys_parser.add_subparsers(dest="keys_command")
    keys_sub.add_parser("list", help="List keys (masked) with usage")
    keys_add = keys_sub.add_parser("add", help="Add a key")
    keys_add.add_argument("key", help="API key")
    keys_add.add_argument("--rate-limit", type=int, default=30, help="Advisory uses per period")
    keys_remove = keys_sub.add_parser("remove", help="Remove a key")
    keys_remove.add_argument("key", help="API key")
    keys_sub.add_parser("reset", help="Reset usage counts")

    # version
    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    if args.version or args.command == "version":
        from cryptokind import __version__

        print(f"cryptokind {__version__}")
        return 0

    _setup_logging()

    if args.command == "serve":
        return _cmd_serve(args)
    elif args.command == "migrate":
        return _cmd_migrate(args)
    elif args.command == "keys":
        return _cmd_keys(args, keys_parser)
    else:
        parser.print_help()
        return 0


def _setup_logging() -> None:
    from cryptokind.config import get_config

    logging.basicConfig(
        level=getattr(logging, get_config().log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ─── serve ───────────────────────────────────────────────────────────────


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from cryptokind.config import get_config

    cfg = get_config()
    host = args.host or cfg.host
    port = args.port or cfg.port

    print(f"Starting CryptoKind API on {host}:{port} ({cfg.environment})...")
    uvicorn.run(
        "cryptokind.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=cfg.log_level.lower(),
    )
    return 0


# ─── migrate ─────────────────────────────────────────────────────────────


def _find_migration_sql() -> str | None:
    """Find the migration SQL file bundled with the package."""
    bundled = Path(__file__).parent / "migrations" / "001_init.sql"
    if bundled.exists():
        return bundled.read_text()
    return None


def _cmd_migrate(args: argparse.Namespace) -> int:
    sql = _find_migration_sql()
    if sql is None:
        print("Error: Migration SQL not found.")
        print("Expected at: cryptokind/migrations/001_init.sql")
        return 1

    if args.check:
        return _cmd_migrate_check()

    if args.dry_run:
        print("-- Dry run: the following SQL would be executed --")
        print(sql)
        return 0

    import psycopg2

    from cryptokind.config import get_config

    cfg = get_config().db
    try:
        print(f"Connecting to {cfg.host}:{cfg.port}/{cfg.name}...")
        conn = psycopg2.connect(**cfg.dict, connect_timeout=5)
        conn.autocommit = True
        with conn.cursor() as cur:
            cur.execute(sql)
        conn.close()
        print("Migration completed successfully.")
    except psycopg2.Error as e:
        print(f"Error: Migration failed: {e}")
        print("Check CRYPTOKIND_DB_* environment variables and ensure PostgreSQL is running.")
        return 1

    return _cmd_migrate_check()


def _cmd_migrate_check() -> int:
    """Check if required tables exist in the database."""
    import psycopg2

    from cryptokind.config import get_config

    cfg = get_config().db
    try:
        conn = psycopg2.connect(**cfg.dict, connect_timeout=5)
        with conn.cursor() as cur:
            cur.execute(
                "SELECT table_name FROM information_schema.tables WHERE table_schema = 'public'"
            )
            existing = {row[0] for row in cur.fetchall()}
        conn.close()
    except psycopg2.Error as e:
        print(f"Error: Cannot check tables: {e}")
        return 1

    missing = [t for t in REQUIRED_TABLES if t not in existing]
    if missing:
        print(f"Missing tables ({len(missing)}/{len(REQUIRED_TABLES)}):")
        for t in missing:
            print(f"  - {t}")
        print("\nRun 'cryptokind migrate' to create them.")
        return 1
    print(f"All {len(REQUIRED_TABLES)} required tables present.")
    return 0


# ─── keys ────────────────────────────────────────────────────────────────


def _rotator():
    from cryptokind.config import get_config
    from cryptokind.keys.rotator import KeyRotator
    from cryptokind.keys.store import JsonFileKeyStore

    cfg = get_config()
    return KeyRotator(JsonFileKeyStore(cfg.key_file, default_key=cfg.upstream.api_key))


def _cmd_keys(args: argparse.Namespace, keys_parser: argparse.ArgumentParser) -> int:
    from cryptokind.errors import KeyStoreError

    rotator = _rotator()
    cmd = args.keys_command

    try:
        if cmd == "list":
            keys = rotator.list_keys()
            if not keys:
                print("No API keys configured.")
                return 0
            print(f"{'KEY':<16} {'USED':>6} {'LIMIT':>6}")
            for k in keys:
                print(f"{k['key']:<16} {k['used']:>6} {k['rateLimit']:>6}")
            print(f"\nLast rotation: {rotator.last_rotation()}")
            return 0

        if cmd == "add":
            if rotator.add_key(args.key, args.rate_limit):
                print("API key added.")
                return 0
            print("Error: API key is empty or already exists.")
            return 1

        if cmd == "remove":
            if rotator.remove_key(args.key):
                print("API key removed.")
                return 0
            print("Error: API key not found.")
            return 1

        if cmd == "reset":
            keys = rotator.reset_usage()
            print(f"Reset usage for {len(keys.keys)} key(s).")
            return 0
    except KeyStoreError as e:
        print(f"Error: {e}")
        return 1

    keys_parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
