import re
from datetime import timedelta

import jwt

from app.core.config import settings
from app.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    mint_session_id,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = get_password_hash("Secret123")
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("secret123", hashed)


def test_token_carries_subject():
    token = create_access_token(data={"sub": "user-1"})
    assert decode_access_token(token)["sub"] == "user-1"


def test_expired_token_is_rejected():
    token = create_access_token(data={"sub": "user-1"}, expires_delta=timedelta(seconds=-5))
    assert decode_access_token(token) is None


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "user-1"}, "another-key", algorithm=settings.ALGORITHM)
    assert decode_access_token(token) is None


def test_token_without_subject_is_rejected():
    token = create_access_token(data={"role": "user"})
    assert decode_access_token(token) is None


def test_session_ids_are_32_hex_chars_and_unique():
    first, second = mint_session_id(), mint_session_id()
    assert re.fullmatch(r"[0-9a-f]{32}", first)
    assert first != second
