"""
Database initialization script for deployment.
Creates all tables from models and seeds the default zones and administrator.

Usage:
    python apps/api/scripts/init_db.py
"""
import sys
import os
import time

# Ensure project root is importable
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


def wait_for_db(app, max_retries=5, retry_delay=10):
    """
    Wait for database to be available with retries.
    Supabase connections can sometimes be slow to establish.
    """
    from apps.api import db
    from sqlalchemy import text

    for attempt in range(max_retries):
        try:
            with app.app_context():
                db.session.execute(text("SELECT 1"))
                db.session.commit()
                print("  Database connection successful!")
                return True
        except Exception as e:
            if attempt < max_retries - 1:
                print(f"  Database connection attempt {attempt + 1}/{max_retries} failed: {e}")
                print(f"  Retrying in {retry_delay} seconds...")
                time.sleep(retry_delay)
            else:
                print(f"  Database connection failed after {max_retries} attempts: {e}")
                raise
    return False


def init_database():
    """Create missing tables and seed reference data."""
    from apps.api.app import create_app
    from apps.api import db
    from apps.api.utils.seed import seed_defaults

    app = create_app()

    print("Connecting to database...")
    wait_for_db(app, max_retries=5, retry_delay=15)

    with app.app_context():
        # Registers every model with SQLAlchemy before create_all
        import apps.api.models  # noqa: F401

        print("Creating missing tables...")
        db.create_all()

        print("Seeding defaults...")
        result = seed_defaults()
        print(f"  Zones created: {result['zones_created']}")
        if result['admin_created']:
            print(f"  Default admin created: {result['admin_created']}")
        else:
            print("  Default admin not created (admin exists or DEFAULT_ADMIN_PASSWORD unset)")

    print("Database initialization complete!")


if __name__ == '__main__':
    init_database()
