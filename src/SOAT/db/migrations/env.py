from __future__ import annotations
import asyncio
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

print(f"[alembic-env] loaded: {__file__}", file=sys.stderr)

# Alembic Config object
config = context.config

# Logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from SOAT.db.base import Base  # noqa: E402
import SOAT.db.models  # noqa: E402,F401  (register mappers)

target_metadata = Base.metadata


# ----- helpers ---------------------------------------------------------------

def _cli_sqlalchemy_url_override() -> str | None:
    x = context.get_x_argument(as_dictionary=True)
    return x.get("sqlalchemy_url") or x.get("url")


def _choose_url() -> str:
    cli_url = _cli_sqlalchemy_url_override()
    if cli_url:
        return cli_url
    for k in ("DATABASE_URL", "ALEMBIC_DATABASE_URL", "ASYNC_DATABASE_URL"):
        v = os.getenv(k)
        if v:
            return v
    from SOAT.core.config import settings
    return settings.DATABASE_URL


# ----- runners ---------------------------------------------------------------

def run_migrations_offline() -> None:
    url = _choose_url()
    print(f"[alembic-env] OFFLINE url={url}", file=sys.stderr)
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def _do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


async def _run_async_migrations(url: str) -> None:
    base_cfg = config.get_section(config.config_ini_section) or {}
    cfg = dict(base_cfg)
    cfg["sqlalchemy.url"] = url

    connectable = async_engine_from_config(cfg, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with connectable.connect() as connection:
            print(f"[alembic-env] CONNECT OK -> {connectable.url.render_as_string()}", file=sys.stderr)
            await connection.run_sync(_do_run_migrations)
    finally:
        await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(_run_async_migrations(_choose_url()))


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
