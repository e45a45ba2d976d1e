from datetime import timedelta
from typing import Optional

from fastapi import Depends, Header, Request
from pymongo.errors import PyMongoError

import database
import settings
from errors import ApiError
from logger import get_logger
from schemas import ADMIN_ROLE
from tokens import InvalidTokenError, TokenService

logger = get_logger(__name__)

token_service = TokenService(
    settings.JWT_SECRET,
    expires_in=timedelta(days=settings.JWT_EXPIRES_DAYS),
    algorithm=settings.JWT_ALGO,
)


def get_db():
    if database.db is None:
        raise ApiError(500, "Database not configured")
    return database.db


def get_token_service() -> TokenService:
    return token_service


def require_sign_in(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """Verify the raw token from the Authorization header and attach the user id."""
    try:
        user_id = tokens.verify(authorization)
    except InvalidTokenError as e:
        logger.info("Rejected request to %s: %s", request.url.path, e)
        raise ApiError(401, "Unauthorized Access")
    request.state.user_id = user_id
    return user_id


def is_admin(user_id: str = Depends(require_sign_in), db=Depends(get_db)) -> dict:
    # Role is read from storage on every request so a demotion applies at once.
    try:
        user = db["user"].find_one({"_id": database.to_object_id(user_id)})
    except PyMongoError as e:
        logger.exception("Role lookup failed for user %s", user_id)
        raise ApiError(401, "Error in admin middleware", error=str(e))
    if not user or user.get("role") != ADMIN_ROLE:
        logger.info("Non-admin user %s denied", user_id)
        raise ApiError(401, "UnAuthorized Access")
    return user
