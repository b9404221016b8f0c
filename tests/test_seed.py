from sqlalchemy import func, select

from src.contact_tool.models.user import User, UserRole
from src.contact_tool.seed import SEED_USERS, ensure_user
from src.contact_tool.services.password import verify_password


def test_ensure_user_is_idempotent(db):
    email, name, role = SEED_USERS[1]
    first = ensure_user(db, email, name, role, "seed-password")
    second = ensure_user(db, email, name, role, "other-password")

    assert first.id == second.id
    assert first.role == UserRole.CS
    assert verify_password("seed-password", second.password_hash)
    assert db.execute(select(func.count(User.id))).scalar_one() == 1
