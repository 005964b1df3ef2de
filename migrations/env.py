"""Alembic environment for the raw SQL mark-management migrations.

Driven programmatically by migrate.py; there is no alembic.ini, so only the
online upgrade path is supported.
"""

from sqlalchemy import create_engine
from sqlalchemy import pool
from alembic import context
import os
import logging

logger = logging.getLogger('alembic.env')


def get_database_url() -> str:
    url = (os.environ.get('DATABASE_URL') or '').strip()
    if not url:
        raise RuntimeError('DATABASE_URL environment variable not set')
    # SQLAlchemy only accepts the postgresql:// scheme.
    if url.startswith('postgres://'):
        url = 'postgresql://' + url[len('postgres://'):]
    return url


def run_migrations() -> None:
    if context.is_offline_mode():
        raise RuntimeError('Offline SQL generation is not supported; run migrate.py against DATABASE_URL.')

    engine = create_engine(get_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        # Hand-written SQL revisions; nothing to autogenerate from.
        context.configure(connection=connection, target_metadata=None, transaction_per_migration=True)
        with context.begin_transaction():
            logger.info("Applying revisions to %s", engine.url.render_as_string(hide_password=True))
            context.run_migrations()


run_migrations()
