"""Tests for the HTTP error types and handlers."""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient


class TestAPIErrors:
    @pytest.mark.parametrize(
        "name,status,error",
        [
            ("NotFoundError", 404, "not_found"),
            ("BadRequestError", 400, "bad_request"),
            ("UnauthorizedError", 401, "unauthorized"),
            ("ForbiddenError", 403, "forbidden"),
            ("ConflictError", 409, "conflict"),
            ("ServiceUnavailableError", 503, "service_unavailable"),
            ("DatabaseError", 500, "database_error"),
        ],
    )
    def test_error_class_defaults(self, name, status, error):
        from portal import errors

        exc = getattr(errors, name)()
        assert exc.status_code == status
        assert exc.error == error
        assert exc.detail == getattr(errors, name).detail
        assert exc.context is None

    def test_context_from_keywords(self):
        from portal.errors import ForbiddenError

        exc = ForbiddenError(detail="Requires role: staff", required=["staff"], role="volunteer")
        assert str(exc) == "Requires role: staff"
        assert exc.context == {"required": ["staff"], "role": "volunteer"}

    def test_to_response_omits_nothing_given(self):
        from portal.errors import NotFoundError

        response = NotFoundError(detail="Activity not found", resource_id="7").to_response()
        assert response.error == "not_found"
        assert response.context == {"resource_id": "7"}
        assert response.error_code is None


class TestExceptionHandlers:
    @pytest.fixture
    def client(self):
        from portal.errors import DatabaseError, UnauthorizedError, register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/login-required")
        async def login_required():
            raise UnauthorizedError(detail="Missing session header")

        @app.get("/db-down")
        async def db_down():
            raise DatabaseError(detail="Could not load activities", error_code="DB_DOWN")

        @app.get("/plain-http")
        async def plain_http():
            raise HTTPException(status_code=409, detail="already exists")

        @app.get("/typed")
        async def typed(limit: int):
            return {"limit": limit}

        return TestClient(app, raise_server_exceptions=False)

    def test_api_error_body(self, client):
        response = client.get("/login-required")
        assert response.status_code == 401
        assert response.json() == {"error": "unauthorized", "detail": "Missing session header"}

    def test_error_code_included(self, client):
        response = client.get("/db-down")
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "database_error"
        assert body["error_code"] == "DB_DOWN"

    def test_http_exception_uses_standard_shape(self, client):
        response = client.get("/plain-http")
        assert response.status_code == 409
        assert response.json() == {"error": "conflict", "detail": "already exists"}

    def test_validation_errors_use_standard_shape(self, client):
        response = client.get("/typed", params={"limit": "many"})
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["context"] == {"fields": ["query.limit"]}


class TestStatusToErrorType:
    def test_known_codes(self):
        from portal.errors import _status_to_error_type

        assert _status_to_error_type(404) == "not_found"
        assert _status_to_error_type(409) == "conflict"
        assert _status_to_error_type(422) == "validation_error"

    def test_unknown_status_code(self):
        from portal.errors import _status_to_error_type

        assert _status_to_error_type(418) == "error"
