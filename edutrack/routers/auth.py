import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from edutrack.database import get_db
from edutrack.errors import ConflictError, InvalidCredentialsError
from edutrack.models.user import User
from edutrack.schemas.user import AuthResponse, LoginRequest, MeResponse, PushTokenUpdate, UserCreate
from edutrack.schemas.student import MessageOut
from edutrack.utils.auth import (
    create_access_token,
    get_current_user,
    get_password_hash,
    normalize_email,
    verify_password,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    email = normalize_email(payload.email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User already exists")

    user = User(
        id=str(uuid4()),
        email=email,
        password_hash=get_password_hash(payload.password),
        name=payload.name,
        role=payload.role,
        phone=payload.phone,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # another registration took the email after the check above
        db.rollback()
        raise ConflictError("User already exists")
    db.refresh(user)
    logger.info("Registered %s account %s", user.role, user.id)

    # registering signs the user in straight away
    return {"message": "User created successfully", "token": create_access_token(user), "user": user}


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """
    Unknown email and wrong password give the same answer so the endpoint
    does not reveal which accounts exist.
    """
    user = db.query(User).filter(User.email == normalize_email(payload.email)).first()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise InvalidCredentialsError()

    return {"message": "Login successful", "token": create_access_token(user), "user": user}


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return {"user": user}


@router.put("/push-token", response_model=MessageOut)
def set_push_token(payload: PushTokenUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Stores the device push token of the signed-in user; null clears it."""
    user.push_token = payload.push_token
    db.commit()
    return {"message": "Push token saved" if payload.push_token else "Push token cleared"}
