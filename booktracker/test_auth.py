from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from .auth import PasswordHasher, TokenService
from .errors import InvalidSignature, TokenExpired


def test_hash_is_salted_and_verifies():
    hasher = PasswordHasher(rounds=4)
    first = hasher.hash("pw1")
    second = hasher.hash("pw1")

    assert first != second
    assert hasher.verify("pw1", first)
    assert hasher.verify("pw1", second)
    assert not hasher.verify("pw2", first)


def test_default_work_factor_is_ten():
    digest = PasswordHasher().hash("pw1")
    assert digest.startswith("$2b$10$")


def test_verify_rejects_garbage_hash():
    assert not PasswordHasher(rounds=4).verify("pw1", "not-a-hash")


def test_issue_and_verify_round_trip():
    tokens = TokenService("secret")
    token = tokens.issue({"id": 7, "username": "alice"})
    assert tokens.verify(token) == {"id": 7, "username": "alice"}


def test_token_expires_after_one_hour_by_default():
    tokens = TokenService("secret")
    claims = jwt.get_unverified_claims(tokens.issue({"id": 1, "username": "a"}))
    remaining = claims["exp"] - datetime.now(timezone.utc).timestamp()
    assert 3500 < remaining <= 3600


def test_verify_rejects_other_secret():
    token = TokenService("secret-a").issue({"id": 1, "username": "a"})
    with pytest.raises(InvalidSignature):
        TokenService("secret-b").verify(token)


def test_verify_rejects_expired_token():
    tokens = TokenService("secret", expires_delta=timedelta(seconds=-5))
    token = tokens.issue({"id": 1, "username": "a"})
    with pytest.raises(TokenExpired):
        tokens.verify(token)


def test_verify_rejects_token_without_id():
    token = jwt.encode({"username": "a"}, "secret", algorithm="HS256")
    with pytest.raises(InvalidSignature):
        TokenService("secret").verify(token)


def test_verify_rejects_malformed_token():
    with pytest.raises(InvalidSignature):
        TokenService("secret").verify("not.a.token")


def test_empty_secret_is_rejected():
    with pytest.raises(RuntimeError):
        TokenService("")
