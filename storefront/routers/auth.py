from fastapi import APIRouter, Depends, HTTPException, Response, status
from typing import Optional
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlmodel import Session, select
from pydantic import BaseModel

from storefront.core.config import settings
from storefront.core.security import Identity, decode_access_token
from storefront.db.session import get_session
from storefront.models.user import User, UserRead
from storefront.routers.cart import get_cart_session_id
from storefront.services.auth import AuthService
from storefront.services.cart_store import CartStore, get_cart_store

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/token")
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="api/v1/auth/token", auto_error=False)


class Token(BaseModel):
    access_token: str
    token_type: str

class UserCreate(BaseModel):
    email: str
    password: str

def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(session)

@router.post("/register", response_model=UserRead)
def register(user_in: UserCreate, service: AuthService = Depends(get_auth_service)):
    return service.register_user(user_in.email, user_in.password)

@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service),
):
    user, error_message = service.authenticate_user(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": service.issue_token(user), "token_type": "bearer"}

@router.post("/logout")
def logout(
    response: Response,
    session_id: str = Depends(get_cart_session_id),
    store: CartStore = Depends(get_cart_store),
):
    """Ends the cart session. Bearer tokens are stateless and simply discarded by the client."""
    store.end_session(session_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "Logged out"}

def _user_from_token(token: Optional[str], session: Session) -> Optional[User]:
    if not token:
        return None
    email = decode_access_token(token)
    if email is None:
        return None
    user = session.exec(select(User).where(User.email == email)).first()
    if user is None or not user.is_active:
        return None
    return user

async def get_current_user(token: str = Depends(oauth2_scheme), session: Session = Depends(get_session)) -> User:
    user = _user_from_token(token, session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

async def get_current_user_optional(token: str = Depends(oauth2_scheme_optional), session: Session = Depends(get_session)) -> Optional[User]:
    return _user_from_token(token, session)

def get_current_identity_optional(user: Optional[User] = Depends(get_current_user_optional)) -> Optional[Identity]:
    if user is None:
        return None
    return Identity(user_id=user.id, email=user.email)

@router.get("/me", response_model=UserRead)
def read_user_me(current_user: User = Depends(get_current_user)):
    return current_user
