from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine.url import make_url

from app.core.config import settings
from app.core.database import Base
from app.domain.accounts.models import Account  # noqa: F401
from app.domain.snapshots.models import BalanceSnapshot  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _sync_database_url() -> str:
    """Map the application's async DATABASE_URL to a sync driver for migrations."""
    url = make_url(settings.DATABASE_URL)

    if url.drivername == "sqlite+aiosqlite":
        url = url.set(drivername="sqlite+pysqlite")
    elif url.drivername == "postgresql+asyncpg":
        url = url.set(drivername="postgresql+psycopg2")

    return url.render_as_string(hide_password=False)


def _configure_sqlalchemy_url() -> None:
    # An explicit URL (e.g. set programmatically) wins over the settings.
    if not config.get_main_option("sqlalchemy.url"):
        config.set_main_option("sqlalchemy.url", _sync_database_url())


def run_migrations_offline() -> None:
    _configure_sqlalchemy_url()
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    _configure_sqlalchemy_url()
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        future=True,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
