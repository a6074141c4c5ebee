import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import PasswordHasher, TokenService, get_password_hasher, get_token_service
from ..database import get_db
from ..errors import Conflict, InternalError, InvalidCredentials

router = APIRouter(tags=["Users"])
logger = logging.getLogger(__name__)

DUPLICATE_USER = "Username or Email already exists."


@router.post("/register", response_model=schemas.MessageResponse, status_code=status.HTTP_201_CREATED)
def register(
    user: schemas.UserCreate,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    try:
        existing_user = (
            db.query(models.User.id)
            .filter(or_(models.User.username == user.username, models.User.email == user.email))
            .first()
        )
        if existing_user:
            raise Conflict(DUPLICATE_USER)

        new_user = models.User(
            username=user.username,
            email=user.email,
            password=hasher.hash(user.password),
        )
        db.add(new_user)
        db.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent registration
        db.rollback()
        raise Conflict(DUPLICATE_USER) from exc
    except (SQLAlchemyError, ValueError) as exc:
        db.rollback()
        logger.exception("Error during user registration")
        raise InternalError("Internal server error.") from exc

    logger.info("Registered user id=%s", new_user.id)
    return {"message": "User registered successfully!"}


@router.post("/login", response_model=schemas.LoginResponse)
def login(
    user: schemas.UserLogin,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    try:
        db_user = db.query(models.User).filter(models.User.email == user.email).first()
    except SQLAlchemyError as exc:
        logger.exception("Error during user login")
        raise InternalError("Internal server error.") from exc

    if db_user is None:
        hasher.dummy_verify()
        raise InvalidCredentials("Invalid email or password.")

    if not hasher.verify(user.password, db_user.password):
        raise InvalidCredentials("Invalid email or password.")

    token = tokens.issue({"id": db_user.id, "username": db_user.username})

    return {
        "message": "Login successful!",
        "user": schemas.UserPublic.model_validate(db_user),
        "token": token,
    }
