"""Seed operator accounts for a fresh database"""
import os
from sqlalchemy.orm import Session
from sqlalchemy import select

from src.contact_tool.database import SessionLocal, engine
from src.contact_tool.models import Base
from src.contact_tool.models.user import User, UserRole
from src.contact_tool.services.password import hash_password

SEED_USERS = [
    ("admin@example.com", "System Admin", UserRole.ADMIN),
    ("cs@example.com", "CS Operator", UserRole.CS),
    ("viewer@example.com", "Viewer User", UserRole.VIEWER),
]


def ensure_user(db: Session, email: str, name: str, role: UserRole, password: str) -> User:
    existing = db.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()

    if existing:
        print(f"{role.value} user already exists: {email}")
        return existing

    user = User(
        email=email,
        name=name,
        role=role,
        password_hash=hash_password(password),
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    print(f"Created {role.value} user: {email} (ID: {user.id})")
    return user


def run_seed():
    password = os.environ.get("SEED_PASSWORD", "change-me-please")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        for email, name, role in SEED_USERS:
            ensure_user(db, email, name, role, password)
        print("Seed completed successfully")
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
