"""Shared helpers for CLI commands."""

import argparse
from datetime import date
from datetime import datetime as dt
from pathlib import Path

from das_central.config import get_settings
from das_central.container import Container
from das_central.repositories.sqlite import SQLiteDatabase


def get_default_db_path() -> Path:
    """Get the default database path in user's home directory."""
    return Path.home() / ".das_central" / "das.db"


def resolve_db_path(args: argparse.Namespace) -> Path:
    database = getattr(args, "database", None)
    return Path(database) if database else get_default_db_path()


def open_container(db_path: Path) -> Container:
    """Container over an existing SQLite database file."""
    db = SQLiteDatabase(str(db_path))
    db.initialize()
    return Container(settings=get_settings(), database=db)


def parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    return dt.strptime(value, "%Y-%m-%d").date()
