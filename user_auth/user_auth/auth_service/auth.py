from passlib.context import CryptContext
from datetime import datetime, timedelta
import logging
import uuid
import jwt
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from .config import settings
from .models import RevokedToken

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=settings.PASSWORD_SCHEMES, deprecated="auto")

REQUIRED_CLAIMS = ["exp", "iat", "sub", "jti"]


def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(user_id: int) -> str:
    """
    Issue a signed access token for a user.

    Every token gets a fresh ``jti`` so two tokens issued within the same
    second are still distinct values.
    """
    now = datetime.utcnow()
    payload = {
        "sub": str(user_id),
        "iss": settings.JWT_ISSUER,
        "iat": now,
        "nbf": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> dict:
    """
    Verify signature, expiry and issuer of a token and return its claims.

    Raises:
        jwt.ExpiredSignatureError: the token is past its ``exp``
        jwt.InvalidTokenError: any other verification failure
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        issuer=settings.JWT_ISSUER,
        options={"require": REQUIRED_CLAIMS},
    )

def token_lifetime_seconds() -> int:
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

def is_token_revoked(jti: str, db: Session) -> bool:
    if not settings.TOKEN_BLACKLIST_ENABLED:
        return False
    return db.query(RevokedToken).filter(RevokedToken.jti == jti).first() is not None

def revoke_token(claims: dict, db: Session) -> bool:
    """
    Record a token's ``jti`` as revoked until its natural expiry.

    Args:
        claims: Decoded token claims (must contain jti, sub and exp)
        db: Database session

    Returns:
        True if the token was recorded, False if the blacklist is disabled
        or the token was already revoked (including by a concurrent request)
    """
    if not settings.TOKEN_BLACKLIST_ENABLED:
        return False

    purge_expired_revocations(db)

    if is_token_revoked(claims["jti"], db):
        return False

    try:
        db.add(RevokedToken(
            jti=claims["jti"],
            user_id=int(claims["sub"]),
            expires_at=datetime.utcfromtimestamp(claims["exp"]),
            revoked_at=datetime.utcnow(),
        ))
        db.commit()
    except IntegrityError:
        # Another request revoked the same jti between the check and the insert
        db.rollback()
        return False
    logger.debug("Token revoked: jti=%s user_id=%s", claims["jti"], claims["sub"])
    return True

def purge_expired_revocations(db: Session) -> int:
    """Delete revocation rows whose tokens have expired anyway."""
    deleted = (
        db.query(RevokedToken)
        .filter(RevokedToken.expires_at < datetime.utcnow())
        .delete(synchronize_session=False)
    )
    if deleted:
        db.commit()
        logger.info("Purged %s expired token revocations", deleted)
    return deleted

def refresh_access_token(claims: dict, db: Session) -> str:
    """
    Issue a replacement token for the same user and revoke the old one.

    Stateless tokens cannot be recalled, so without the blacklist the old
    token stays valid until it expires.
    """
    new_token = create_access_token(int(claims["sub"]))
    revoke_token(claims, db)
    return new_token
