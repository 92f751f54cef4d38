"""Revoked JWTs (admin logout)."""
from apps.api.utils.time import utc_now
from apps.api import db


class TokenBlacklist(db.Model):
    __tablename__ = 'token_blacklist'

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), unique=True, nullable=False, index=True)
    admin_id = db.Column(db.Integer, db.ForeignKey('admin_users.id'), nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True)
    revoked_at = db.Column(db.DateTime, default=utc_now)

    def __repr__(self):
        return f'<TokenBlacklist {self.jti}>'

    @classmethod
    def revoke(cls, jti: str, admin_id=None, expires_at=None):
        if cls.is_token_revoked(jti):
            return None
        entry = cls(jti=jti, admin_id=admin_id, expires_at=expires_at)
        db.session.add(entry)
        return entry

    @classmethod
    def is_token_revoked(cls, jti: str) -> bool:
        return db.session.query(cls.id).filter_by(jti=jti).first() is not None
