"""CRUD-style helpers for managing user profiles."""
from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from afterclasses.core.settings import settings
from afterclasses.models.user import User
from afterclasses.schemas.user import CreateProfileRequest

__all__ = [
    "get_user",
    "get_user_by_email",
    "create_profile",
]


def get_user(db: Session, user_id: int) -> User | None:
    """Return a single user by primary key."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Return the user registered with ``email``, if any."""
    return db.query(User).filter(User.email == email).first()


def create_profile(
    db: Session,
    profile: CreateProfileRequest,
    starting_coins: int | None = None,
) -> User:
    """Persist a new profile credited with the starting coin grant."""
    db_user = User(
        email=profile.email,
        name=profile.name,
        gender=profile.gender,
        pitch_line=profile.pitch_line,
        personality=profile.personality or [],
        toxic_traits=profile.toxic_traits or [],
        interests=profile.interests or [],
        avatar=profile.avatar,
        coins=settings.starting_coins if starting_coins is None else starting_coins,
    )
    try:
        db.add(db_user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(db_user)
    return db_user
