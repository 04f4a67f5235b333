import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt

from .errors import BadRequest, Conflict, Forbidden, InvalidCredentials, Unauthorized
from .models import CurrentUser, User
from .storage import Repository

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Fixed cost parameters, independent of argon2-cffi's defaults.
password_hasher = PasswordHasher(time_cost=3, memory_cost=65536, parallelism=4)


def hash_password(password: str) -> str:
    return password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def create_access_token(
    data: Dict[str, Any],
    secret: str,
    expires_delta: timedelta,
    now_utc: Optional[datetime] = None,
) -> str:
    to_encode = data.copy()
    current_time = now_utc if now_utc is not None else datetime.now(timezone.utc)
    to_encode["exp"] = current_time + expires_delta
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> CurrentUser:
    """Verify signature and expiry; raises Forbidden on any problem."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        return CurrentUser(id=payload["id"], email=payload["email"])
    except (JWTError, KeyError, ValueError) as exc:
        logger.debug("Rejected access token: %s", exc)
        raise Forbidden() from exc


def _credentials(email: Optional[str], password: Optional[str]) -> tuple[str, str]:
    email = (email or "").strip().lower()
    if not email or not password:
        raise BadRequest("Email and password are required.")
    return email, password


class AuthService:
    def __init__(self, repo: Repository, secret: str, token_ttl: timedelta = timedelta(hours=1)):
        self.repo = repo
        self.secret = secret
        self.token_ttl = token_ttl

    def register(self, email: Optional[str], password: Optional[str]) -> User:
        email, password = _credentials(email, password)
        if self.repo.get_user_by_email(email):
            raise Conflict("User with this email already exists.")
        user = self.repo.add_user(email, hash_password(password))
        if user is None:
            raise Conflict("User with this email already exists.")
        logger.info("Registered user %s (id=%s)", user.email, user.id)
        return user

    def login(self, email: Optional[str], password: Optional[str]) -> str:
        email, password = _credentials(email, password)
        user = self.repo.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        logger.info("User %s logged in", user.email)
        return create_access_token({"id": user.id, "email": user.email}, self.secret, self.token_ttl)

    def authenticate(self, token: Optional[str]) -> CurrentUser:
        if not token:
            raise Unauthorized()
        return decode_access_token(token, self.secret)
