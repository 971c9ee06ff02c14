from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
import os

from vitrine_bot.repo.models import Base

# Interpret the config file for Python logging.
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Metadados dos modelos (permite autogenerate)
target_metadata = Base.metadata

def _database_url() -> str:
    url = os.environ.get("VB_DATABASE_URL")
    if not url:
        raise RuntimeError("VB_DATABASE_URL não definida")
    return url

def run_migrations_offline():
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = engine_from_config(
        {}, prefix="sqlalchemy.", poolclass=pool.NullPool, url=_database_url()
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
