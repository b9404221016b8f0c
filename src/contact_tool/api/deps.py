"""API dependencies - session authentication and database session"""
from typing import Annotated, Optional
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session
from sqlalchemy import select

from src.contact_tool.config import settings
from src.contact_tool.database import get_db
from src.contact_tool.models.user import User


def get_session_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    user_id = request.session.get("user_id")
    if not user_id:
        return None
    user = db.execute(
        select(User).where(User.id == user_id, User.is_active == True)
    ).scalar_one_or_none()
    return user


def require_login(user: Optional[User] = Depends(get_session_user)) -> User:
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_import_role(user: User = Depends(require_login)) -> User:
    """Only roles listed in IMPORT_ALLOWED_ROLES may write contacts in bulk"""
    if not user.may_import(settings.import_role_list):
        raise HTTPException(status_code=403, detail="Forbidden")
    return user


DbSession = Annotated[Session, Depends(get_db)]
CurrentUser = Annotated[User, Depends(require_login)]
ImportUser = Annotated[User, Depends(require_import_role)]
