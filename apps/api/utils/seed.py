"""Default reference data: the six zones and a first administrator."""
import logging

from flask import current_app

from apps.api import db
from apps.api.models.admin_user import AdminUser
from apps.api.models.zone import Zone

logger = logging.getLogger(__name__)

DEFAULT_ZONES = [
    (1, 'Zone 1 - Purok Uno'),
    (2, 'Zone 2 - Purok Dos'),
    (3, 'Zone 3 - Purok Tres'),
    (4, 'Zone 4 - Purok Kwatro'),
    (5, 'Zone 5 - Purok Singko'),
    (6, 'Zone 6 - Purok Seis'),
]


def seed_zones() -> int:
    """Insert the default zones when the table is empty."""
    if Zone.query.first():
        return 0
    for number, name in DEFAULT_ZONES:
        db.session.add(Zone(zone_number=number, zone_name=name))
    db.session.commit()
    logger.info("Seeded %d zones", len(DEFAULT_ZONES))
    return len(DEFAULT_ZONES)


def create_admin(email: str, password: str, full_name: str) -> AdminUser:
    """Create and commit an admin account. Raises ValueError on duplicates."""
    email = (email or '').strip().lower()
    if AdminUser.find_by_email(email):
        raise ValueError(f"Admin {email} already exists")
    admin = AdminUser(email=email, full_name=(full_name or '').strip() or email, is_active=True)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    return admin


def seed_default_admin():
    """Create the configured default admin when no admin exists yet."""
    if AdminUser.query.first():
        return None
    password = current_app.config.get('DEFAULT_ADMIN_PASSWORD')
    if not password:
        logger.warning("DEFAULT_ADMIN_PASSWORD not set; skipping default admin")
        return None
    admin = create_admin(
        current_app.config.get('DEFAULT_ADMIN_EMAIL'),
        password,
        current_app.config.get('DEFAULT_ADMIN_NAME'),
    )
    logger.info("Seeded default admin %s", admin.email)
    return admin


def seed_defaults() -> dict:
    zones = seed_zones()
    admin = seed_default_admin()
    return {'zones_created': zones, 'admin_created': admin.email if admin else None}
