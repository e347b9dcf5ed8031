# employee_api/core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from employee_api.core.config import Settings
from employee_api.core.database import get_db, user_repository
from employee_api.core.exceptions import InvalidToken, Unauthorized
from employee_api.models.model import User

logger = logging.getLogger(__name__)

# Password context for hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token scheme; missing tokens are reported by get_current_user
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify that the plain password matches the hashed password"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Get password hash"""
    return pwd_context.hash(password)


async def authenticate_user(session: AsyncSession, identifier: str, password: str) -> Optional[User]:
    """Return the user matching ``identifier`` (email or username) and password."""
    user = await user_repository.find_by_login(session, identifier)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


class TokenService:
    """Issues and verifies signed, time-limited session tokens."""

    def __init__(self, secret: str, ttl: timedelta, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("A JWT signing secret is required")
        self.secret = secret
        self.ttl = ttl
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(settings.JWT_SECRET, settings.token_ttl, settings.JWT_ALGORITHM)

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": str(user_id),
            "id": str(user_id),
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise InvalidToken("token expired")
        except JWTError as e:
            raise InvalidToken(f"invalid token: {str(e)}")

        user_id = payload.get("sub")
        if not user_id:
            raise InvalidToken("token has no subject")
        return user_id


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the bearer token to a user and attach it to the request."""
    if not token:
        logger.warning(f"Auth rejected for {request.method} {request.url.path}: no token")
        raise Unauthorized("Not authorized, no token")

    token_service: TokenService = request.app.state.token_service
    try:
        user_id = token_service.verify(token)
    except InvalidToken as e:
        logger.warning(f"Auth rejected for {request.method} {request.url.path}: {e.reason}")
        raise Unauthorized("Not authorized, token failed")

    user = await user_repository.get(db, user_id)
    if user is None:
        logger.warning(f"Auth rejected for {request.method} {request.url.path}: user {user_id} not found")
        raise Unauthorized("Not authorized, user not found")

    request.state.user = user
    return user
