# tests/api/conftest.py
"""
Фикстуры HTTP-слоя: приложение поверх in-memory контейнера и TestClient.
"""

from __future__ import annotations

from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

from safehome.api.app import create_app
from safehome.config import settings
from safehome.core.auth.security import create_access_token


class ApiSession:
    """
    Обёртка над TestClient для нескольких пользователей в одном клиенте.

    Аутентификация идёт заголовком Bearer, cookie токена из ответа
    удаляется, CSRF cookie общий.
    """

    def __init__(self, client: TestClient) -> None:
        self.client = client

    @property
    def csrf(self) -> str:
        token = self.client.cookies.get(settings.security.CSRF_COOKIE_NAME)
        if token is None:
            self.client.get("/auth/csrf")
            token = self.client.cookies.get(settings.security.CSRF_COOKIE_NAME)
        return token

    def headers(self, token: str | None) -> dict[str, str]:
        headers = {settings.security.CSRF_HEADER_NAME: self.csrf}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def signup(self, role: str, email: str, name: str = "Test User", password: str = "password123") -> tuple[dict, str]:
        """Регистрирует пользователя и возвращает (user, token)."""
        response = self.client.post(
            "/auth/signup",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert response.status_code == 201, response.text
        token = response.cookies[settings.security.COOKIE_NAME]
        self.client.cookies.delete(settings.security.COOKIE_NAME)
        return response.json()["user"], token

    def get(self, path: str, token: str | None = None, **kwargs: Any):
        return self.client.get(path, headers=self.headers(token), **kwargs)

    def post(self, path: str, token: str | None = None, json: Any = None, **kwargs: Any):
        return self.client.post(path, headers=self.headers(token), json=json, **kwargs)


@pytest.fixture
def app(container):
    return create_app(container)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api(client: TestClient) -> ApiSession:
    return ApiSession(client)


@pytest.fixture
def admin_token(admin) -> str:
    return create_access_token(admin.id, admin.role)


@pytest.fixture
def linked_family(api: ApiSession) -> dict[str, Any]:
    """Ребёнок с согласием и родитель с принятой связью."""
    child, child_token = api.signup("child", "kid@example.com", name="Маша")
    parent, parent_token = api.signup("parent", "mom@example.com", name="Анна")

    assert api.post("/me/consent", child_token, json={"consentGiven": True}).status_code == 200
    link = api.post("/links/request", parent_token, json={"childEmail": "kid@example.com"}).json()
    assert api.post("/links/accept", child_token, json={"linkId": link["id"]}).status_code == 200

    return {
        "child": child,
        "child_token": child_token,
        "parent": parent,
        "parent_token": parent_token,
        "link": link,
    }
