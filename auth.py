# auth.py
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import EmailStr

from errors import NotAuthenticated
from models import Role, Schema, User
from settings import settings
from users import SessionStore, UserUpdate

# ===================================================================
# Pydantic Schemas (Data Validation)
# ===================================================================

class LoginRequest(Schema):
    """Demo sign-in: an email from the roster and the role to act as."""
    email: EmailStr
    role: Role = "customer"


class Token(Schema):
    """Schema for the authentication token response."""
    access_token: str
    token_type: str
    user: User


class LogoutResponse(Schema):
    success: bool


# ===================================================================
# Configuration
# ===================================================================

router = APIRouter(prefix="/auth", tags=["Auth"])

bearer_scheme = HTTPBearer(auto_error=False)


def get_session(request: Request) -> SessionStore:
    return request.app.state.stores.session


# ===================================================================
# Utility Functions
# ===================================================================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Creates a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.JWT_EXPIRY_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


# ===================================================================
# Current User Dependency
# ===================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: SessionStore = Depends(get_session),
) -> User:
    """Resolves the bearer token to the signed-in user of the session store."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(credentials.credentials, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    try:
        user = await session.get_profile()
    except NotAuthenticated:
        raise credentials_exception

    if user.id != user_id:
        raise credentials_exception
    return user


# ===================================================================
# API Endpoints
# ===================================================================

@router.post("/login", response_model=Token)
async def login(payload: LoginRequest, session: SessionStore = Depends(get_session)):
    """
    Signs in a roster user and returns a bearer token.
    No password is checked: the roster lookup is the whole credential check.
    """
    user = await session.login(payload.email, payload.role)
    access_token = create_access_token(data={"sub": user.id, "role": user.role})
    return Token(access_token=access_token, token_type="bearer", user=user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(session: SessionStore = Depends(get_session)):
    return LogoutResponse(success=await session.logout())


@router.get("/me", response_model=User)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """Fetches the profile of the currently authenticated user."""
    return current_user


@router.patch("/me", response_model=User)
async def update_users_me(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    session: SessionStore = Depends(get_session),
):
    return await session.update_profile(payload)


@router.get("/users", response_model=List[User], summary="List all users (admin only)")
async def list_users(
    current_user: User = Depends(get_current_user),
    session: SessionStore = Depends(get_session),
):
    return await session.get_all_users()
