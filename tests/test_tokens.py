from datetime import timedelta

import jwt
import pytest

from tokens import InvalidTokenError, TokenService


def test_issued_token_verifies_to_user_id():
    service = TokenService("secret")
    token = service.issue("user123")
    assert service.verify(token) == "user123"
    # verifying twice gives the same answer
    assert service.verify(token) == "user123"


def test_token_signed_with_other_secret_fails():
    token = TokenService("secret").issue("user123")
    with pytest.raises(InvalidTokenError):
        TokenService("other-secret").verify(token)


def test_tampered_token_fails():
    service = TokenService("secret")
    header, payload, signature = service.issue("user123").split(".")
    forged = ".".join([header, payload, signature[::-1]])
    with pytest.raises(InvalidTokenError):
        service.verify(forged)


def test_expired_token_fails():
    service = TokenService("secret", expires_in=timedelta(seconds=-10))
    token = service.issue("user123")
    with pytest.raises(InvalidTokenError, match="expired"):
        service.verify(token)


@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_missing_or_malformed_token_fails(token):
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify(token)


def test_token_without_user_id_fails():
    token = jwt.encode({"sub": "user123"}, "secret", algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify(token)


def test_default_expiry_is_seven_days():
    service = TokenService("secret")
    payload = jwt.decode(service.issue("u"), "secret", algorithms=["HS256"])
    assert payload["exp"] - payload["iat"] == int(timedelta(days=7).total_seconds())


def test_empty_secret_rejected():
    with pytest.raises(ValueError):
        TokenService("")
