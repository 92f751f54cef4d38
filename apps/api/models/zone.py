"""Zone (purok) reference data for the barangay."""
from apps.api.utils.time import utc_now
from apps.api import db


class Zone(db.Model):
    __tablename__ = 'zones'

    # Primary Key
    id = db.Column(db.Integer, primary_key=True)

    # Basic Information
    zone_number = db.Column(db.Integer, unique=True, nullable=False)
    zone_name = db.Column(db.String(100), nullable=False)

    # Zone leader contact
    zone_leader = db.Column(db.String(150), nullable=True)
    leader_contact = db.Column(db.String(20), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=utc_now)

    def __repr__(self):
        return f'<Zone {self.zone_number}>'

    def to_dict(self):
        """Convert zone to dictionary."""
        return {
            'id': self.id,
            'zone_number': self.zone_number,
            'zone_name': self.zone_name,
            'zone_leader': self.zone_leader,
            'leader_contact': self.leader_contact,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
