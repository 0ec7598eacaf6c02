import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from app.db.db import get_session
from app.models.user import User
from app.schemas import LoginRequest, RegisterRequest, SessionUser, TokenResponse
from app.utils.auth_helper import (
    create_access_token,
    get_current_user_required,
    get_db_user,
    get_password_hash,
    to_session_user,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user),
        user=to_session_user(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, session: Session = Depends(get_session)):
    email = payload.email.lower()

    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        logger.warning("Registration failed - email already registered: %s", email)
        raise HTTPException(status_code=409, detail="Email already registered")

    db_user = User(
        email=email,
        hashed_password=get_password_hash(payload.password),
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)

    logger.info("Registration successful: user_id=%s", db_user.id)
    return _token_response(db_user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, session: Session = Depends(get_session)):
    db_user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    if not db_user or not verify_password(payload.password, db_user.hashed_password):
        logger.warning("Login failed - incorrect credentials: %s", payload.email)
        raise HTTPException(
            status_code=401,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _token_response(db_user)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    return _token_response(get_db_user(session, current_user))


@router.get("/me", response_model=SessionUser)
def me(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    return to_session_user(get_db_user(session, current_user))
