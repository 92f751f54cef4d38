"""Document request model."""
from apps.api.utils.time import utc_now
from apps.api import db
from sqlalchemy import Index


DOCUMENT_TYPES = ('zone_clearance', 'indigency', 'clearance')
REQUEST_STATUSES = ('pending', 'approved', 'rejected')
MARITAL_STATUSES = ('single', 'married', 'widowed', 'separated')


class DocumentRequest(db.Model):
    __tablename__ = 'document_requests'

    # Primary Key
    id = db.Column(db.Integer, primary_key=True)

    # Reference Number (unique identifier for tracking and pickup)
    reference_number = db.Column(db.String(32), unique=True, nullable=False)

    # Applicant Information
    first_name = db.Column(db.String(100), nullable=False)
    middle_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    birth_date = db.Column(db.Date, nullable=False)
    address = db.Column(db.String(255), nullable=False)
    zone_id = db.Column(db.Integer, db.ForeignKey('zones.id'), nullable=False)
    contact = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    marital_status = db.Column(db.String(20), nullable=False)  # single, married, widowed, separated

    # Document Information
    document_type = db.Column(db.String(20), nullable=False)  # zone_clearance, indigency, clearance
    purpose = db.Column(db.String(255), nullable=False)

    # Zone clearance cross-reference
    has_zone_clearance = db.Column(db.Boolean, default=False, nullable=False)
    zone_clearance_reference = db.Column(db.String(32), nullable=True)

    # Uploaded files
    zone_clearance_file_id = db.Column(db.Integer, db.ForeignKey('stored_files.id'), nullable=True)
    valid_id_file_id = db.Column(db.Integer, db.ForeignKey('stored_files.id'), nullable=True)

    # Status
    status = db.Column(db.String(20), default='pending', nullable=False)  # pending, approved, rejected
    rejection_reason = db.Column(db.Text, nullable=True)

    # Processing
    processed_by = db.Column(db.Integer, db.ForeignKey('admin_users.id'), nullable=True)
    processed_at = db.Column(db.DateTime, nullable=True)

    # Timestamps
    request_date = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    zone = db.relationship('Zone', backref=db.backref('document_requests', lazy='dynamic'))
    processor = db.relationship('AdminUser', backref=db.backref('processed_requests', lazy='dynamic'))
    zone_clearance_file = db.relationship('StoredFile', foreign_keys=[zone_clearance_file_id])
    valid_id_file = db.relationship('StoredFile', foreign_keys=[valid_id_file_id])

    # Indexes
    __table_args__ = (
        Index('idx_doc_request_email', 'email'),
        Index('idx_doc_request_contact', 'contact'),
        Index('idx_doc_request_status', 'status'),
        Index('idx_doc_request_type', 'document_type'),
        Index('idx_doc_request_date', 'request_date'),
    )

    def __repr__(self):
        return f'<DocumentRequest {self.reference_number}>'

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return ' '.join(p for p in parts if p)

    def to_dict(self, include_zone=True, include_files=False):
        """Convert document request to dictionary."""
        data = {
            'id': self.id,
            'reference_number': self.reference_number,
            'first_name': self.first_name,
            'middle_name': self.middle_name,
            'last_name': self.last_name,
            'age': self.age,
            'birth_date': self.birth_date.isoformat() if self.birth_date else None,
            'address': self.address,
            'zone_id': self.zone_id,
            'contact': self.contact,
            'email': self.email,
            'marital_status': self.marital_status,
            'document_type': self.document_type,
            'purpose': self.purpose,
            'has_zone_clearance': bool(self.has_zone_clearance),
            'zone_clearance_reference': self.zone_clearance_reference,
            # Never expose file contents here; only whether a file is attached.
            'has_zone_clearance_file': bool(self.zone_clearance_file_id),
            'has_valid_id_file': bool(self.valid_id_file_id),
            'status': self.status,
            'rejection_reason': self.rejection_reason,
            'processed_by': self.processed_by,
            'processed_at': self.processed_at.isoformat() if self.processed_at else None,
            'request_date': self.request_date.isoformat() if self.request_date else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_zone and self.zone:
            data['zone'] = {
                'id': self.zone.id,
                'zone_number': self.zone.zone_number,
                'zone_name': self.zone.zone_name,
            }

        if include_files:
            data['zone_clearance_file_id'] = self.zone_clearance_file_id
            data['valid_id_file_id'] = self.valid_id_file_id

        return data
