# tests/core/test_auth_service.py
"""
Тесты аутентификации: пароли, JWT и разбор токена.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from safehome.common.constants import UserRole
from safehome.common.exceptions import Conflict, Unauthenticated
from safehome.config import settings
from safehome.core.auth.security import (
    create_access_token,
    decode_token,
    generate_csrf_token,
    hash_password,
    verify_password,
)
from safehome.core.auth.service import CredentialVerifier, extract_bearer


class TestPasswords:
    """Тесты хэширования паролей."""

    def test_hash_and_verify(self) -> None:
        password_hash = hash_password("correct-horse")
        assert password_hash != "correct-horse"
        assert verify_password("correct-horse", password_hash) is True
        assert verify_password("wrong-horse", password_hash) is False

    def test_invalid_hash(self) -> None:
        assert verify_password("anything", "not-a-hash") is False


class TestTokens:
    """Тесты JWT."""

    def test_roundtrip_payload(self) -> None:
        user_id = uuid4()
        payload = decode_token(create_access_token(user_id, UserRole.PARENT))
        assert payload["sub"] == str(user_id)
        assert payload["role"] == "parent"

    def test_expired_token(self) -> None:
        expired = jwt.encode(
            {"sub": str(uuid4()), "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            settings.security.JWT_SECRET,
            algorithm=settings.security.JWT_ALGORITHM,
        )
        with pytest.raises(Unauthenticated):
            decode_token(expired)

    def test_wrong_secret(self) -> None:
        forged = jwt.encode({"sub": str(uuid4())}, "another-secret-of-sufficient-length-0123", algorithm="HS256")
        with pytest.raises(Unauthenticated):
            decode_token(forged)

    def test_csrf_token(self) -> None:
        token = generate_csrf_token()
        assert len(token) == 64
        assert token != generate_csrf_token()

    @pytest.mark.parametrize(
        "header, expected",
        [("Bearer abc", "abc"), ("Bearer ", None), ("Basic abc", None), (None, None)],
    )
    def test_extract_bearer(self, header, expected) -> None:
        assert extract_bearer(header) == expected


class TestCredentialVerifier:
    """Тесты регистрации, входа и проверки токена."""

    @pytest.mark.asyncio
    async def test_register_and_login(self, user_repo) -> None:
        verifier = CredentialVerifier(user_repo)

        user, token = await verifier.register("Маша", "masha@example.com", "password123", UserRole.CHILD)
        logged_in, _ = await verifier.login("MASHA@example.com", "password123")

        assert logged_in.id == user.id
        assert (await verifier.verify_token(token)).id == user.id

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, user_repo, child) -> None:
        with pytest.raises(Conflict):
            await CredentialVerifier(user_repo).register("X", child.email, "password123", UserRole.PARENT)

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, user_repo) -> None:
        verifier = CredentialVerifier(user_repo)
        await verifier.register("Анна", "anna@example.com", "password123", UserRole.PARENT)

        with pytest.raises(Unauthenticated, match="Invalid credentials"):
            await verifier.login("anna@example.com", "password999")

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, user_repo) -> None:
        with pytest.raises(Unauthenticated):
            await CredentialVerifier(user_repo).login("ghost@example.com", "password123")

    @pytest.mark.asyncio
    async def test_token_of_deleted_user(self, user_repo, parent) -> None:
        token = create_access_token(parent.id, parent.role)
        await user_repo.delete(parent.id)

        with pytest.raises(Unauthenticated):
            await CredentialVerifier(user_repo).verify_token(token)

    @pytest.mark.asyncio
    async def test_request_prefers_cookie(self, user_repo, parent, child) -> None:
        verifier = CredentialVerifier(user_repo)
        cookies = {settings.security.COOKIE_NAME: create_access_token(parent.id, parent.role)}
        header = f"Bearer {create_access_token(child.id, child.role)}"

        user = await verifier.authenticate_request(cookies, header)

        assert user.id == parent.id

    @pytest.mark.asyncio
    async def test_handshake_prefers_query_token(self, user_repo, parent, child) -> None:
        verifier = CredentialVerifier(user_repo)
        query_token = create_access_token(child.id, child.role)
        cookies = {settings.security.COOKIE_NAME: create_access_token(parent.id, parent.role)}

        user = await verifier.authenticate_handshake(query_token, None, cookies)

        assert user.id == child.id

    @pytest.mark.asyncio
    async def test_missing_token(self, user_repo) -> None:
        with pytest.raises(Unauthenticated):
            await CredentialVerifier(user_repo).authenticate_handshake(None, None, {})
