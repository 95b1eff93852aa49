from logging.config import fileConfig

import sqlalchemy
from sqlalchemy import pool
from alembic import context

import gradebook.lib.json as json
from gradebook.storage.table import metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_section_option("alembic", "sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = config.get_section_option("alembic", "sqlalchemy.url")
    assert url is not None, "sqlalchemy.url is not configured"
    engine = sqlalchemy.create_engine(
        url, poolclass=pool.NullPool, json_serializer=json.dumps, json_deserializer=json.loads
    )

    with engine.connect() as connection:
        # SQLite cannot ALTER most things in place; batch mode rebuilds the table instead
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
