"""
Alembic environment for the Library API.

The database URL always comes from app.config settings; alembic.ini only
configures logging. Online migrations run on the application's own engine,
so SQLite gets the same connect arguments the API uses.

SQLite cannot ALTER most column properties in place. For SQLite URLs
migrations are rendered in batch mode, which rebuilds the table instead.
"""

from logging.config import fileConfig

from alembic import context

from app.config import get_settings
from app.database import Base, engine
from app.models import Author, Book  # noqa: F401 - registers the tables on Base.metadata

settings = get_settings()

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

RENDER_AS_BATCH = settings.database_url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout (alembic upgrade head --sql)."""
    context.configure(
        url=settings.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=RENDER_AS_BATCH,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
