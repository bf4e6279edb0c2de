from __future__ import annotations

import secrets
from datetime import datetime

from app.extensions import db


class ExtensionToken(db.Model):
    """Bearer token issued to a browser extension install."""

    __tablename__ = 'extension_token'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, index=True
    )
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=True)
    revoked = db.Column(db.Boolean, nullable=False, default=False)
    last_used = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    user = db.relationship('User', back_populates='tokens')

    @classmethod
    def issue(cls, user, name: str = 'Extension') -> ExtensionToken:
        """Create (but do not commit) a fresh token for *user*."""
        token = cls(user=user, token=secrets.token_hex(32), name=name)
        db.session.add(token)
        return token

    @classmethod
    def validate(cls, raw: str) -> ExtensionToken | None:
        """Return the live token row for *raw*, touching ``last_used``."""
        if not raw:
            return None
        row = cls.query.filter_by(token=raw, revoked=False).first()
        if row:
            row.last_used = datetime.utcnow()
            db.session.commit()
        return row

    def __repr__(self) -> str:
        return f'<ExtensionToken {self.id} user={self.user_id} revoked={self.revoked}>'
