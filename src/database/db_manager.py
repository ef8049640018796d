# database/db_manager.py
import logging
import os
import time
from datetime import datetime, timezone

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.engine import make_url
from sqlalchemy.orm import relationship
from werkzeug.security import check_password_hash, generate_password_hash

# Initialize the SQLAlchemy object
db = SQLAlchemy()
logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    banned = db.Column(db.Boolean, default=False, nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    play_records = relationship(
        "MusicPlayRecord",
        back_populates="owner",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def get_id(self) -> str:
        return str(self.id)

    @property
    def can_sign_in(self) -> bool:
        return bool(self.is_active) and not self.banned

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "is_admin": self.is_admin,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class MusicPlayRecord(db.Model):
    __tablename__ = "music_play_records"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    platform = db.Column(db.String(32), nullable=False)
    song_id = db.Column(db.String(128), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    artist = db.Column(db.String(255), nullable=False)
    album = db.Column(db.String(255), nullable=True)
    pic = db.Column(db.String(500), nullable=True)
    play_time = db.Column(db.Float, default=0, nullable=False)  # seconds into the song
    duration = db.Column(db.Float, default=0, nullable=False)  # seconds
    save_time = db.Column(db.BigInteger, nullable=False)  # epoch milliseconds

    owner = relationship("User", back_populates="play_records")

    __table_args__ = (
        UniqueConstraint("user_id", "platform", "song_id", name="uq_play_record_song"),
    )

    @property
    def key(self) -> str:
        return f"{self.platform}+{self.song_id}"

    def to_dict(self) -> dict:
        return {
            "platform": self.platform,
            "id": self.song_id,
            "name": self.name,
            "artist": self.artist,
            "album": self.album,
            "pic": self.pic,
            "playTime": self.play_time,
            "duration": self.duration,
            "saveTime": self.save_time,
        }

    def __repr__(self):
        return f"<MusicPlayRecord {self.key}: {self.name} by {self.artist}>"


def current_millis() -> int:
    return int(time.time() * 1000)


def initialize_database(app):
    """
    Initializes the SQLAlchemy extension with the Flask app instance
    and creates all database tables if they don't already exist.
    """
    db.init_app(app)

    # Ensure the directory for the configured SQLite file exists
    try:
        uri = app.config.get('SQLALCHEMY_DATABASE_URI')
        if uri:
            url = make_url(uri)
            # Only handle file-based SQLite (not :memory:)
            if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
                db_dir = os.path.dirname(url.database)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)
                    logger.info("Created SQLite DB directory: %s", db_dir)
    except Exception as e:
        # Don't block app startup on path parsing issues; log and continue
        logger.warning("Could not ensure SQLite directory exists: %s", e)

    with app.app_context():
        db.create_all()
        logger.info("Database tables created or already exist.")
