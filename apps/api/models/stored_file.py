"""Uploaded files attached to document requests.

Rows are write-once. Content lives either in ``data`` (database backend) or
in object storage at ``storage_path`` (Supabase backend).
"""
from apps.api.utils.time import utc_now
from apps.api import db


class StoredFile(db.Model):
    __tablename__ = 'stored_files'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    content_type = db.Column(db.String(100), nullable=False, default='application/octet-stream')
    size = db.Column(db.Integer, nullable=False, default=0)

    backend = db.Column(db.String(20), nullable=False, default='database')  # database, supabase
    data = db.Column(db.LargeBinary, nullable=True)
    storage_path = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=utc_now)

    def __repr__(self):
        return f'<StoredFile {self.id} {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'content_type': self.content_type,
            'size': self.size,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
