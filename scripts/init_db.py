"""
Create the valuedcustomer and audit_events tables for local/dev databases.

Production schemas are managed with Alembic (scripts/release.py); this script
is for a fresh SQLite file or a scratch database.

Usage:
  DATABASE_URL=sqlite:///vcms.db python scripts/init_db.py
"""

import os
import sys
from pathlib import Path

from sqlalchemy import create_engine

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.vcms.models import Base  # noqa: E402


def create_tables(*, database_url: str | None = None) -> None:
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///vcms.db").strip()
    engine = create_engine(db_url, future=True)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
    print(f"Initialized database tables: {', '.join(sorted(Base.metadata.tables))}")


def main() -> None:
    create_tables(database_url=None)


if __name__ == "__main__":
    main()
