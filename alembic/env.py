import os
import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import engine_from_config, pool

from alembic import context

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from db.models import Base  # noqa: E402
from namebank.config import DEFAULT_DB_URL  # noqa: E402

target_metadata = Base.metadata


def get_url():
    """Resolve the SQLAlchemy URL for migrations.

    Precedence:
    1) URL provided in alembic.ini via Config (set by bootstrap_db.py)
    2) Environment variable NAMEBANK_DB_URL
    3) Project default SQLite path
    """
    cfg_url = config.get_main_option('sqlalchemy.url')
    if cfg_url and cfg_url.strip():
        return cfg_url
    env_url = os.environ.get('NAMEBANK_DB_URL')
    if env_url and env_url.strip():
        return env_url
    return DEFAULT_DB_URL


def run_migrations_offline():
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    configuration = config.get_section(config.config_ini_section) or {}
    configuration['sqlalchemy.url'] = get_url()
    connectable = engine_from_config(
        configuration,
        prefix='sqlalchemy.',
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection, target_metadata=target_metadata
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
