"""Unit tests for password hashing and bearer tokens."""

from datetime import timedelta

import pytest
from jose import jwt
from libs.auth.dependencies import decode_access_token
from libs.auth.security import create_access_token, hash_password, verify_password
from libs.common.errors import AuthenticationError


@pytest.mark.unit
def test_password_hash_round_trip():
    hashed = hash_password("hunter2")
    assert hashed != "hunter2"
    assert verify_password("hunter2", hashed)
    assert not verify_password("hunter3", hashed)


@pytest.mark.unit
def test_verify_password_rejects_garbage_hash():
    assert not verify_password("hunter2", "not-a-hash")
    assert not verify_password("hunter2", None)


@pytest.mark.unit
def test_token_carries_user_id():
    token = create_access_token(42)
    assert decode_access_token(token).user_id == 42


@pytest.mark.unit
def test_expired_token_is_rejected():
    token = create_access_token(42, expires_delta=timedelta(seconds=-10))
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


@pytest.mark.unit
def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({"sub": "42"}, "some-other-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


@pytest.mark.unit
def test_token_without_subject_is_rejected():
    from libs.common.config import get_settings

    settings = get_settings()
    token = jwt.encode({"foo": "bar"}, settings.JWT_SECRET, algorithm="HS256")
    with pytest.raises(AuthenticationError):
        decode_access_token(token)
