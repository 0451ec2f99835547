"""Apply or roll back the pushwatch schema.

    python -m services.pushwatch.scripts.migrate          # upgrade to head
    DIR=down python -m services.pushwatch.scripts.migrate # roll back one revision
"""
import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import create_engine

from services.pushwatch.app.core.config import get_settings
from services.pushwatch.app.db import _normalize_database_url

SERVICE_DIR = Path(__file__).resolve().parent.parent


def build_config() -> Config:
    cfg = Config(str(SERVICE_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(SERVICE_DIR / "migrations"))
    return cfg


def current_revision(database_url: str) -> str | None:
    engine = create_engine(database_url)
    try:
        with engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()
    finally:
        engine.dispose()


def main() -> None:
    database_url = _normalize_database_url(get_settings().database_url)
    cfg = build_config()
    before = current_revision(database_url)

    if os.getenv("DIR") == "down":
        if before is None:
            print("there are no migrations to roll back")
            return
        command.downgrade(cfg, "-1")
    else:
        command.upgrade(cfg, "head")

    after = current_revision(database_url)
    if before == after:
        print("there are no new migrations to run")
        return
    print(f"migrated from {before or 'base'} to {after or 'base'}")


if __name__ == "__main__":
    main()
