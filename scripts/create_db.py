"""Create the PayMind database (PostgreSQL only) and its tables.

Usage: python -m scripts.create_db [--database-url URL] [--csv data/sample_invoices.csv]
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env")


def _log(message: str) -> None:
    print(f"[create_db] {message}", flush=True)


def create_postgres_database(db_url: str) -> None:
    import psycopg2
    from psycopg2 import sql

    result = urlparse(db_url)
    database = result.path.lstrip("/")
    # Connect to the default 'postgres' database to create the new one.
    conn = psycopg2.connect(
        dbname="postgres",
        user=result.username,
        password=result.password,
        host=result.hostname,
        port=result.port,
    )
    conn.autocommit = True
    try:
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (database,))
            if cursor.fetchone():
                _log(f"Database '{database}' already exists.")
                return
            _log(f"Creating database '{database}'...")
            cursor.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(database)))
            _log(f"Database '{database}' created successfully.")
    finally:
        conn.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create PayMind tables and optionally load an invoice CSV.")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL.")
    parser.add_argument("--csv", type=Path, default=None, help="Invoice CSV to load after creating tables.")
    args = parser.parse_args()

    if args.database_url:
        os.environ["DATABASE_URL"] = args.database_url
    db_url = os.getenv("DATABASE_URL", "sqlite:///./paymind.db")

    if db_url.startswith("postgresql"):
        create_postgres_database(db_url.replace("postgresql+psycopg2://", "postgresql://", 1))

    # Imported late so the engine binds to the URL chosen above.
    from paymind.core.exceptions import PayMindException
    from paymind.core.logging_config import configure_logging
    from paymind.database.db import get_active_database_url, init_db
    from paymind.services.csv_import import parse_invoice_csv
    from paymind.services.invoice_service import InvoiceService

    configure_logging()
    init_db()
    _log(f"Tables ready on {get_active_database_url().split('://', 1)[0]}")

    if args.csv is not None:
        try:
            rows = parse_invoice_csv(args.csv.read_text(encoding="utf-8"))
            with InvoiceService() as service:
                invoices = service.bulk_upsert(rows)
        except PayMindException as exc:
            _log(f"Loading {args.csv} failed: {exc}")
            return 1
        _log(f"Loaded {len(invoices)} invoices from {args.csv}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
