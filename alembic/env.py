"""Alembic environment for the journal schema (users, user_tags, airdrops, tasks)."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.models import Base

# Registers every table on Base.metadata.
from app.models import Airdrop, Task, User, UserTag  # noqa: F401

config = context.config
if config.config_file_name is not None:
    try:
        fileConfig(config.config_file_name)
    except KeyError:
        pass

target_metadata = Base.metadata

# Expression indexes created by hand in migrations; autogenerate cannot see them in the models.
MANUAL_INDEXES = frozenset({"ix_users_email_lower"})


def include_object(obj, name, type_, reflected, compare_to) -> bool:
    if type_ == "index" and name in MANUAL_INDEXES:
        return False
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    _configure(
        url=settings.DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_with_connection(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # No statement timeout for schema changes.
    connectable = create_engine(
        settings.DATABASE_URL,
        poolclass=NullPool,
        connect_args={"options": "-c statement_timeout=0"},
    )
    with connectable.connect() as connection:
        _run_with_connection(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
