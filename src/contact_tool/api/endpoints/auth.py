"""Session login/logout for operators"""
from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy import select

from src.contact_tool.api.deps import DbSession, get_session_user
from src.contact_tool.models.user import User
from src.contact_tool.services.password import verify_password

router = APIRouter(prefix="/api/auth")


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/login")
def login(request: Request, body: LoginRequest, db: DbSession):
    user = db.execute(
        select(User).where(User.email == body.email.lower().strip(), User.is_active == True)
    ).scalar_one_or_none()

    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="メールアドレスまたはパスワードが正しくありません")

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()

    request.session["user_id"] = user.id
    request.session["user_role"] = user.role.value
    return {"ok": True, "role": user.role.value}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"ok": True}


@router.get("/me")
def me(request: Request, db: DbSession):
    """Identity as seen by the import client: {logged_in, role}"""
    user = get_session_user(request, db)
    if not user:
        return {"logged_in": False, "role": None}
    return {"logged_in": True, "role": user.role.value, "email": user.email, "name": user.name}
