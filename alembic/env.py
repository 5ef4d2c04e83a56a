"""Alembic environment for the Fleet banner schema."""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

from fleet.database.models import Base
from fleet.config.settings import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# DATABASE_URL from settings/.env wins over alembic.ini
config.set_main_option("sqlalchemy.url", get_settings().database_url)

# SQLite cannot ALTER most columns in place; batch mode rebuilds the table
CONFIGURE_KWARGS = {
    "target_metadata": target_metadata,
    "render_as_batch": True,
    "compare_type": True,
}


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **CONFIGURE_KWARGS,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations against the configured database."""
    url = config.get_main_option("sqlalchemy.url", "")
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}

    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        connect_args=connect_args,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, **CONFIGURE_KWARGS)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
