"""
Apply database migrations without starting the web server.

Usage:
  python migrate.py

Runs every pending Alembic revision under migrations/ against DATABASE_URL.
"""

import os
import sys

from dotenv import load_dotenv

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'migrations')


def build_alembic_config():
    from alembic.config import Config

    config = Config()
    config.set_main_option('script_location', MIGRATIONS_DIR)
    return config


def main():
    load_dotenv()
    if not (os.environ.get('DATABASE_URL') or '').strip():
        print("✗ DATABASE_URL not found. Set it in .env", file=sys.stderr)
        sys.exit(1)

    from alembic import command

    try:
        print("Applying database migrations...")
        command.upgrade(build_alembic_config(), 'head')
        print("✓ Migrations completed successfully.")
    except Exception as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
