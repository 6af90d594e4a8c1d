"""
Admin credentials and session tokens.

Passwords are hashed with passlib, sessions are signed JWTs (python-jose)
carrying the admin id. The token travels either as a Bearer header or in the
httpOnly admin cookie.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

import settings
from database import ADMIN, create_document, storage_errors, to_object_id
from logger import get_logger
from schemas import Admin, AdminIdentity

logger = get_logger(__name__)

# Use pbkdf2_sha256 to avoid external bcrypt dependency issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def ensure_admin(db: Database, email: str, password: str) -> None:
    """Create the configured admin once; an existing account is left untouched."""
    email = email.lower()
    with storage_errors("ensure_admin"):
        if db[ADMIN].find_one({"email": email}) is not None:
            return
        try:
            create_document(db, ADMIN, Admin(email=email, password_hash=hash_password(password)))
            logger.info(f"Admin account created: {email}")
        except DuplicateKeyError:
            # another worker seeded it first
            pass


def authenticate(db: Database, email: str, password: str) -> Optional[AdminIdentity]:
    with storage_errors("authenticate"):
        doc = db[ADMIN].find_one({"email": email.lower()})
    if not doc or not verify_password(password, doc["password_hash"]):
        logger.warning("Rejected admin login attempt")
        return None
    return AdminIdentity(id=str(doc["_id"]), email=doc["email"])


def issue_token(admin: AdminIdentity) -> str:
    return create_access_token({"sub": admin.id, "email": admin.email, "role": "admin"})


def verify_admin(db: Database, token: Optional[str]) -> Optional[AdminIdentity]:
    """Resolve a session token to the admin it was issued for."""
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or payload.get("role") != "admin":
        return None
    admin_id = to_object_id(payload.get("sub"))
    if admin_id is None:
        return None
    with storage_errors("verify_admin"):
        doc = db[ADMIN].find_one({"_id": admin_id}, {"email": 1})
    if not doc:
        return None
    return AdminIdentity(id=str(doc["_id"]), email=doc["email"])
