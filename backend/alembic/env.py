from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import engine_from_config
from sqlalchemy import pool
from alembic import context

from fellowship.config import settings
from fellowship.db.base import Base
from fellowship.db.tables import ALL_TABLE_NAMES
import fellowship.models  # noqa: F401  (registers every model on Base)

load_dotenv()

# versions/ builds the schema from 001_initial_schema onward; every table it creates
# has a model, and ALL_TABLE_NAMES lists them. Catch a model added without a migration.
_registered = set(Base.metadata.tables)
_expected = set(ALL_TABLE_NAMES)
assert _registered == _expected, (
    f"Fellowship models define {sorted(_registered - _expected)} with no migrated table and "
    f"migrated tables {sorted(_expected - _registered)} with no model; add a revision under "
    "alembic/versions and update fellowship.db.tables.ALL_TABLE_NAMES."
)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
config.set_main_option("sqlalchemy.url", settings.database_url)


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
