from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))
load_dotenv(ROOT_DIR / ".env")

from hfbmm.db.engine import DEFAULT_SQLITE_URL, make_engine  # noqa: E402
from hfbmm.db.utils import resolve_sqlite_url  # noqa: E402
from hfbmm.models import Base  # noqa: E402 - import registers every table

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

DATABASE_URL = (
    resolve_sqlite_url(os.environ["DB_URL"], ROOT_DIR)
    if os.getenv("DB_URL")
    else DEFAULT_SQLITE_URL
)
IS_SQLITE = DATABASE_URL.startswith("sqlite")

# Percent signs need to be escaped due to ConfigParser interpolation rules.
config.set_main_option("sqlalchemy.url", DATABASE_URL.replace("%", "%%"))


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER constraints; batch mode rebuilds the table.
        render_as_batch=IS_SQLITE,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""

    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against the configured database."""

    engine = make_engine(database_url=DATABASE_URL)
    with engine.connect() as connection:
        if IS_SQLITE:
            # A batch rebuild drops and recreates "stores"; with foreign keys
            # on, that drop would cascade into positivation_details.
            connection.exec_driver_sql("PRAGMA foreign_keys=OFF")
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
        if IS_SQLITE:
            connection.exec_driver_sql("PRAGMA foreign_keys=ON")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
