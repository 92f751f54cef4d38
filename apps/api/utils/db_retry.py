"""
Database connection retry utilities for handling intermittent connection issues.
Public read endpoints (zones, tracking) are wrapped so a dropped pooled
connection to Supabase is retried instead of surfacing as a 500.
"""
import time
import functools
from flask import current_app, jsonify
from sqlalchemy.exc import OperationalError, InterfaceError, TimeoutError as SQLTimeoutError


# Exceptions that indicate a connection issue (should retry)
RETRIABLE_EXCEPTIONS = (
    OperationalError,
    InterfaceError,
    SQLTimeoutError,
    ConnectionError,
    TimeoutError,
)


def _reset_session():
    from apps.api import db
    db.session.rollback()
    db.session.remove()


def with_db_retry(max_retries=3, initial_delay=1.0, backoff_factor=2.0):
    """
    Decorator that retries a route on connection failures.

    After the last attempt it answers 503 instead of raising.

    Usage:
        @with_db_retry(max_retries=2)
        def list_zones():
            return jsonify(...)
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except RETRIABLE_EXCEPTIONS as e:
                    last_exception = e

                    if attempt < max_retries:
                        current_app.logger.warning(
                            f"Database connection failed (attempt {attempt + 1}/{max_retries + 1}): {str(e)[:100]}. "
                            f"Retrying in {delay:.1f}s..."
                        )
                        time.sleep(delay)
                        delay *= backoff_factor
                        _reset_session()
                    else:
                        current_app.logger.error(
                            f"Database connection failed after {max_retries + 1} attempts: {str(e)}"
                        )

            return jsonify({
                'error': 'Database connection temporarily unavailable',
                'message': 'Please try again in a few moments',
                'details': str(last_exception)[:200],
            }), 503

        return wrapper
    return decorator
