# employee_api/api/auth.py
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from employee_api.api.deps import get_token_service, read_payload
from employee_api.core.database import get_db, user_repository
from employee_api.core.decorators import log_execution_time, log_requests
from employee_api.core.exceptions import Conflict, InternalError, Unauthorized
from employee_api.core.security import TokenService, authenticate_user, get_password_hash
from employee_api.core.validation import (
    LOGIN_NORMALIZERS,
    LOGIN_RULES,
    SIGNUP_NORMALIZERS,
    SIGNUP_RULES,
    validate
)
from employee_api.schemas.schema import ErrorResponse, LoginResponse, SignupResponse, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/users",
    tags=["authentication"],
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}},
)


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
@log_requests
@log_execution_time
async def signup(
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    payload, _ = await read_payload(request)
    user_data = validate(payload, SIGNUP_RULES, SIGNUP_NORMALIZERS)

    if await user_repository.find_conflict(db, user_data["username"], user_data["email"]):
        raise Conflict("User already exists with this email or username")

    try:
        user = await user_repository.create(db, {
            "username": user_data["username"],
            "email": user_data["email"],
            "password_hash": get_password_hash(user_data["password"]),
        })
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Signup: unique constraint violated: {str(e.orig)}")
        raise Conflict("User already exists with this email or username")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Signup error: {str(e)}")
        raise InternalError()

    logger.info(f"User created: {user.username} ({user.id})")
    return {"message": "User created successfully", "user_id": user.id}


@router.post("/login", response_model=LoginResponse)
@log_requests
@log_execution_time
async def login(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    payload, _ = await read_payload(request)
    # the identifier may arrive as either email or username
    if not payload.get("email") and payload.get("username"):
        payload["email"] = payload["username"]
    credentials = validate(payload, LOGIN_RULES, LOGIN_NORMALIZERS)

    user = await authenticate_user(db, credentials["email"], credentials["password"])
    if not user:
        logger.warning(f"Failed login for {credentials['email']}")
        raise Unauthorized("Invalid email or password")

    token = token_service.issue(user.id)
    return {
        "message": "Login successful",
        "token": token,
        "user": UserOut.model_validate(user),
    }
