from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
import os
import sys
from pathlib import Path

# Make the 'app' package importable when alembic runs from another directory.
BACKEND_ROOT = Path(__file__).resolve().parent.parent
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

if not os.getenv("DATABASE_URL"):
    raise SystemExit("DATABASE_URL env var is required for migrations")

# Same driver-normalized URL the app connects with (postgres:// -> postgresql+psycopg://).
from app.db.session import SQLALCHEMY_DATABASE_URL  # noqa: E402
from app.models.base import Base  # noqa: E402
from app.models import user, tour, availability, closed_day, admin_setting  # noqa: F401,E402
from app.models import discount_code, booking, testimonial, notification  # noqa: F401,E402
from app.models import gallery, article  # noqa: F401,E402

target_metadata = Base.metadata
# SQLite cannot ALTER most constraints in place; batch mode recreates the table instead.
RENDER_AS_BATCH = SQLALCHEMY_DATABASE_URL.startswith("sqlite")


def run_migrations_offline():
    context.configure(
        url=SQLALCHEMY_DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        {"sqlalchemy.url": SQLALCHEMY_DATABASE_URL},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
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
