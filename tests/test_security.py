from datetime import timedelta

import jwt
import pytest

from app.core.exceptions import InvalidArgument, Unauthenticated
from app.core.security import TokenService


@pytest.fixture
def tokens():
    return TokenService(secret="test-secret")


def test_issue_and_verify(tokens):
    token = tokens.issue({"email": "a@b.test", "name": "A"})
    identity = tokens.verify(token)
    assert identity.email == "a@b.test"
    assert identity.claims["name"] == "A"


def test_token_expires_after_one_hour(tokens):
    claims = jwt.decode(tokens.issue({"email": "a@b.test"}), "test-secret", algorithms=["HS256"])
    assert claims["exp"] - claims["iat"] == 3600


def test_issue_requires_email(tokens):
    with pytest.raises(InvalidArgument):
        tokens.issue({"name": "nobody"})


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_verify_rejects_malformed(tokens, token):
    with pytest.raises(Unauthenticated):
        tokens.verify(token)


def test_verify_rejects_expired():
    expired = TokenService(secret="test-secret", expires_in=timedelta(seconds=-5))
    token = expired.issue({"email": "a@b.test"})
    with pytest.raises(Unauthenticated):
        TokenService(secret="test-secret").verify(token)


def test_verify_rejects_foreign_signature(tokens):
    token = TokenService(secret="other-secret").issue({"email": "a@b.test"})
    with pytest.raises(Unauthenticated):
        tokens.verify(token)


def test_verify_rejects_token_without_email(tokens):
    token = jwt.encode({"sub": "x"}, "test-secret", algorithm="HS256")
    with pytest.raises(Unauthenticated):
        tokens.verify(token)
