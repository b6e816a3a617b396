from fastapi import FastAPI, Depends, HTTPException, status, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from contextlib import asynccontextmanager
from typing import Optional
import logging
import jwt

from .config import settings
from .db import get_db, init_db
from .models import User
from .schemas import (
    UserCreate,
    UserLogin,
    UserProfile,
    APIResponse,
    TokenResponse,
    ProfileResponse,
)
from .auth import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
    is_token_revoked,
    refresh_access_token,
    revoke_token,
    token_lifetime_seconds,
)
from .errors import ValidationFailed, register_exception_handlers
from .utils.event_logger import log_auth_event, configure_event_log_file
from .routes import health

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

EMAIL_TAKEN = "The email has already been taken."


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Initialize database and event log on startup"""
    init_db()
    configure_event_log_file()
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(health.router)


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_claims(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> dict:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise unauthorized("Token is missing")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise unauthorized("Token is missing")

    try:
        claims = decode_access_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Token is invalid") from exc

    if is_token_revoked(claims["jti"], db):
        raise unauthorized("Token has been revoked")
    return claims


def get_current_user(
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> User:
    try:
        user_id = int(claims["sub"])
    except ValueError as exc:
        raise unauthorized("Token is invalid") from exc

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise unauthorized("User not found")
    return user


@app.post("/register", response_model=APIResponse)
def register(payload: UserCreate, request: Request, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == payload.email).first():
        raise ValidationFailed({"email": [EMAIL_TAKEN]})

    new_user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
    )
    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise ValidationFailed({"email": [EMAIL_TAKEN]}) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database error during registration for %s: %s", payload.email, exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register user"
        ) from exc

    log_auth_event("register", request, user=new_user)
    return APIResponse(status=True, message="Registration successful")


@app.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password):
        log_auth_event("login_failure", request, user=user, email=credentials.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    log_auth_event("login_success", request, user=user)
    return TokenResponse(
        status=True,
        message="Login successful",
        token=create_access_token(user.id),
        expires_in=token_lifetime_seconds(),
    )


@app.get("/profile", response_model=ProfileResponse)
def profile(user: User = Depends(get_current_user)):
    return ProfileResponse(
        status=True,
        message="Profile data",
        data=UserProfile.model_validate(user),
    )


@app.get("/refresh", response_model=TokenResponse)
def refresh(
    request: Request,
    claims: dict = Depends(get_token_claims),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    new_token = refresh_access_token(claims, db)
    log_auth_event("token_refresh", request, user=user)
    return TokenResponse(
        status=True,
        message="Token refreshed",
        token=new_token,
        expires_in=token_lifetime_seconds(),
    )


@app.get("/logout", response_model=APIResponse)
def logout(
    request: Request,
    claims: dict = Depends(get_token_claims),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    revoke_token(claims, db)
    log_auth_event("logout", request, user=user)
    return APIResponse(status=True, message="User logged out successfully")
