from typing import Optional

import bcrypt

import settings
from logger import get_logger

logger = get_logger(__name__)


def hash_password(password: Optional[str]) -> Optional[str]:
    """Return a bcrypt digest of ``password``, or None if it cannot be hashed.

    Missing input is not an error here; callers that need a hard failure
    validate the password before calling.
    """
    try:
        salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning("Could not hash password: %s", type(e).__name__)
        return None


def compare_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except (AttributeError, TypeError, ValueError):
        return False
