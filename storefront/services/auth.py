from datetime import timedelta
from typing import Optional
from sqlalchemy import func
from sqlmodel import Session, select
from fastapi import HTTPException

from storefront.core.logging_config import get_logger
from storefront.core.security import create_access_token, get_password_hash, verify_password
from storefront.models.user import User

log = get_logger(__name__)


class AuthService:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_email(self, email: str) -> Optional[User]:
        # Case-insensitive exact match
        return self.session.exec(select(User).where(User.email == email)).first() or \
               self.session.exec(select(User).where(func.lower(User.email) == email.lower())).first()

    def register_user(self, email: str, password: str) -> User:
        if self.get_user_by_email(email):
            raise HTTPException(status_code=400, detail="Email already registered")

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            is_active=True,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        log.info(f"Registered user {user.id}")
        return user

    def authenticate_user(self, email: str, password: str) -> tuple[Optional[User], Optional[str]]:
        user = self.get_user_by_email(email)
        if not user:
            return None, "User not found. Please check your email or register a new account."
        if not verify_password(password, user.password_hash):
            return None, "Incorrect password. Please try again."
        if not user.is_active:
            return None, "Account is disabled."
        return user, None

    def issue_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        return create_access_token(data={"sub": user.email}, expires_delta=expires_delta)
