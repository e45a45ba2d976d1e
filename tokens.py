from datetime import datetime, timedelta, timezone

import jwt


class InvalidTokenError(Exception):
    """Raised when a session token is missing, malformed, tampered or expired."""


class TokenService:
    """Issues and verifies the signed session tokens handed out at login.

    The signing secret is passed in rather than read from the environment so
    that tests and secret rotation can build their own instance. Rotating the
    secret invalidates every outstanding token.
    """

    def __init__(self, secret: str, expires_in: timedelta = timedelta(days=7), algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self.secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {"_id": str(user_id), "iat": now, "exp": now + self.expires_in}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        if not token:
            raise InvalidTokenError("Token must be provided")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token") from e
        user_id = payload.get("_id")
        if not user_id:
            raise InvalidTokenError("Invalid token payload")
        return user_id
