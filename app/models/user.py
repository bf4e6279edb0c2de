from __future__ import annotations

from datetime import datetime

from flask_login import UserMixin

from app.extensions import db


class User(UserMixin, db.Model):
    """Account that owns problems, submissions and aggregate statistics."""

    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    tokens = db.relationship(
        'ExtensionToken', back_populates='user',
        cascade='all, delete-orphan', lazy='dynamic',
    )
    problems = db.relationship(
        'Problem', back_populates='user',
        cascade='all, delete-orphan', lazy='dynamic',
    )
    statistics = db.relationship(
        'Statistics', back_populates='user', uselist=False,
        cascade='all, delete-orphan',
    )

    def __repr__(self) -> str:
        return f'<User {self.username!r}>'
