from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from conftest import access_headers, register
from todo_api.core.authorization import Identity, authorize
from todo_api.core.result import ErrorKind, Failure, Success
from todo_api.core.tokens import TokenError, TokenKind, TokenService


class TestAuthorize:
    @pytest.mark.parametrize("token", [None, ""])
    def test_no_token(self, tokens, token):
        assert authorize(tokens, TokenKind.ACCESS, token) == Failure(
            ErrorKind.AUTHENTICATION, TokenError.NO_TOKEN
        )

    def test_valid_token(self, tokens):
        user_id = uuid4()
        token = tokens.issue(TokenKind.ACCESS, user_id)

        assert authorize(tokens, TokenKind.ACCESS, token) == Success(Identity(id=user_id))

    def test_invalid_token(self, tokens):
        result = authorize(tokens, TokenKind.ACCESS, "garbage")
        assert result == Failure(ErrorKind.AUTHENTICATION, TokenError.INVALID)

    def test_expired_token(self, config):
        issuer = TokenService(config.auth)
        token = issuer.issue(TokenKind.ACCESS, uuid4())

        later = TokenService(
            config.auth, clock=lambda: datetime.now(UTC) + timedelta(hours=1)
        )
        result = authorize(later, TokenKind.ACCESS, token)
        assert result == Failure(ErrorKind.AUTHENTICATION, TokenError.EXPIRED)


class TestGate:
    def test_missing_header(self, client):
        response = client.get("/api/todos")

        assert response.status_code == 401
        assert response.json() == {"message": "No token provided", "data": None}

    def test_bearer_authorization_header_is_not_read(self, client):
        session = register(client, "bearer_user")
        response = client.get(
            "/api/todos",
            headers={"Authorization": f"Bearer {session['access_token']}"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"

    def test_invalid_token(self, client):
        response = client.get("/api/todos", headers={"x-access-token": "garbage"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid token", "data": None}

    def test_expired_token(self, client, config):
        past = TokenService(
            config.auth, clock=lambda: datetime.now(UTC) - timedelta(hours=1)
        )
        token = past.issue(TokenKind.ACCESS, uuid4())

        response = client.get("/api/todos", headers={"x-access-token": token})
        assert response.status_code == 401
        assert response.json()["message"] == "Token expired"

    def test_refresh_token_in_access_header(self, client):
        session = register(client, "wrong_kind")
        response = client.get(
            "/api/todos", headers={"x-access-token": session["refresh_token"]}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    def test_access_token_in_refresh_header(self, client):
        session = register(client, "wrong_kind2")
        response = client.post(
            "/api/auth/refresh", headers={"x-refresh-token": session["access_token"]}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    def test_accepted(self, client):
        session = register(client, "accepted")
        response = client.get("/api/todos", headers=access_headers(session))

        assert response.status_code == 200

    def test_outcomes_are_logged(self, client, caplog):
        caplog.set_level("INFO", logger="todo_api")
        session = register(client, "audited")

        client.get("/api/todos", headers=access_headers(session))
        client.get("/api/todos", headers={"x-access-token": "garbage"})

        messages = [r.getMessage() for r in caplog.records]
        assert any("GET /api/todos: access token accepted" in m for m in messages)
        assert any(
            "GET /api/todos: access token rejected (Invalid token)" in m for m in messages
        )
