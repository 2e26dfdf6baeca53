"""Create the configured Postgres database and, optionally, its tables."""
from __future__ import annotations

import argparse
import logging
import sys

import psycopg
from psycopg import sql
from sqlalchemy.engine import make_url

from afterclasses.core.settings import settings

logger = logging.getLogger("afterclasses.ensure_db")


def split_database_url(db_url: str) -> tuple[str, str]:
    """Return ``(maintenance_dsn, target_db)`` for a SQLAlchemy or libpq URL.

    The maintenance DSN points at the ``postgres`` database on the same
    server so the target can be created from there.
    """
    db_url = (db_url or "").strip().strip("'\"")
    if not db_url:
        raise ValueError("DATABASE_URL is empty")
    url = make_url(db_url)
    if not url.drivername.startswith("postgres"):
        raise ValueError(f"Not a Postgres URL: {url.drivername!r}")
    target_db = url.database or "postgres"
    admin_url = url.set(drivername="postgresql", database="postgres")
    return admin_url.render_as_string(hide_password=False), target_db


def ensure_database_exists(db_url: str, sslmode: str | None = None) -> bool:
    """Create the target database if missing. Returns True when created."""
    admin_dsn, target_db = split_database_url(db_url)
    extra = {"sslmode": sslmode} if sslmode else {}
    with psycopg.connect(admin_dsn, autocommit=True, **extra) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone() is not None:
            logger.info("Database %s already exists", target_db)
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target_db)))
    logger.info("Created database %s", target_db)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Ensure the configured database exists")
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables from the ORM metadata afterwards.",
    )
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level.upper())

    raw_url = args.url or settings.database_url_sync
    sslmode = settings.database_connect_args.get("sslmode")
    try:
        ensure_database_exists(raw_url, sslmode)
        if args.create_tables:
            from afterclasses.db.session import create_tables

            create_tables()
            logger.info("Tables created")
    except (ValueError, psycopg.Error) as exc:
        logger.error("ensure_db failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
