from typing import Optional

from sqlalchemy.orm import Session

from app import models
from app.utils.security import get_password_hash


def create_user(db: Session, username: str, email: str, password: str, role: str = "student") -> models.User:
    db_user = models.User(
        username=username,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
    )
    db.add(db_user)
    db.flush()
    return db_user


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def username_exists(db: Session, username: str) -> bool:
    return db.query(models.User.id).filter(models.User.username == username).first() is not None


def email_exists(db: Session, email: str) -> bool:
    return db.query(models.User.id).filter(models.User.email == email).first() is not None
