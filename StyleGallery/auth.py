# auth.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db
from errors import BadRequest, Unauthorized, ValidationError, ok
from identity import InvalidRecord, UserType, identity_fields, resolve_display_name
from models import User
from repositories import UserRepository
from settings import settings

logger = logging.getLogger(__name__)

# ===================================================================
# Pydantic Schemas (Data Validation)
# ===================================================================

class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class UserCreate(_CamelModel):
    """Schema for user registration request."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    user_type: UserType = UserType.INDIVIDUAL
    username: Optional[str] = Field(None, max_length=64)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=32)


class LoginRequest(_CamelModel):
    email: EmailStr
    password: str


class UserPublic(_CamelModel):
    """Schema for safely exposing user data."""
    id: str
    email: EmailStr
    user_type: str
    username: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    company_name: Optional[str]
    display_name: Optional[str]
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(email=user.email, created_at=user.created_at, **identity_fields(user))


# ===================================================================
# Configuration
# ===================================================================

router = APIRouter(prefix="/auth", tags=["Auth"])

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


# ===================================================================
# Utility Functions
# ===================================================================

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies a plain password against a hashed one."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hashes a plain password."""
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Creates a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRY_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt

def decode_access_token(token: str) -> str:
    """Returns the user id carried by a token, or raises Unauthorized."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")
    user_id = payload.get("user_id")
    if not user_id:
        raise Unauthorized("Invalid or expired token")
    return str(user_id)


# ===================================================================
# Current User Dependency
# ===================================================================

async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency to get the current authenticated user from a token."""
    if not token:
        raise Unauthorized("Access token required")
    user_id = decode_access_token(token)
    user = await UserRepository(db).find_by_id(user_id)
    if user is None:
        raise Unauthorized("User no longer exists")
    return user


async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Like get_current_user, but anonymous or bad tokens yield None."""
    if not token:
        return None
    try:
        user_id = decode_access_token(token)
    except Unauthorized:
        return None
    return await UserRepository(db).find_by_id(user_id)


# ===================================================================
# API Endpoints
# ===================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    """
    Handles new user registration.
    - Checks the identity fields required by the user type.
    - Hashes the password for security.
    """
    users = UserRepository(db)
    new_user = User(
        email=user_in.email.lower(),
        hashed_password=get_password_hash(user_in.password),
        user_type=user_in.user_type.value,
        username=(user_in.username or "").strip() or None,
        first_name=(user_in.first_name or "").strip() or None,
        last_name=(user_in.last_name or "").strip() or None,
        company_name=(user_in.company_name or "").strip() or None,
        phone=(user_in.phone or "").strip() or None,
    )
    try:
        resolve_display_name(new_user)
    except InvalidRecord as e:
        raise ValidationError(str(e))

    if await users.find_by_email(new_user.email):
        raise BadRequest("An account with this email already exists.")
    if new_user.username and await users.find_by_username(new_user.username):
        raise BadRequest("This username is already taken.")

    try:
        await users.save(new_user)
    except IntegrityError:
        await users.rollback()
        raise BadRequest("An account with these details already exists.")

    logger.info(f"✅ Registered {new_user.user_type} user {new_user.id}")
    access_token = create_access_token(data={"user_id": new_user.id})
    return ok(
        {"token": access_token, "tokenType": "bearer", "user": UserPublic.from_user(new_user)},
        message="Registration successful",
    )


@router.post("/login")
async def login(form: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchanges email and password for a bearer token."""
    user = await UserRepository(db).find_by_email(form.email.lower())
    if not user or not verify_password(form.password, user.hashed_password):
        raise Unauthorized("Invalid email or password")

    access_token = create_access_token(data={"user_id": user.id})
    return ok(
        {"token": access_token, "tokenType": "bearer", "user": UserPublic.from_user(user)},
        message="Login successful",
    )


@router.get("/me")
async def read_users_me(current_user: User = Depends(get_current_user)):
    """
    Fetches the profile of the currently authenticated user.
    """
    return ok(UserPublic.from_user(current_user))
