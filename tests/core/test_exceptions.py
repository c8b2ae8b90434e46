"""Tests for the error handlers wired in create_app()."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from src.core.config import Settings, settings
from src.core.exceptions import DuplicateError, UpstreamServiceError, ValidationError
from src.main import create_app


@pytest.fixture
def failing_app():
    app = create_app()

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    @app.get("/db-boom")
    async def db_boom():
        raise OperationalError("SELECT 1", {}, Exception("no such table: factures"))

    @app.get("/upstream")
    async def upstream():
        raise UpstreamServiceError("openrouter", "Erreur transcription: quota exceeded")

    @app.get("/invalid")
    async def invalid():
        raise ValidationError("Montant HT invalide", field="montantHT")

    @app.get("/duplicate")
    async def duplicate():
        raise DuplicateError("Client", "numDossier", "AM0028")

    return app


@pytest.fixture
async def failing_client(failing_app):
    async with AsyncClient(
        transport=ASGITransport(app=failing_app, raise_app_exceptions=False),
        base_url="http://test",
    ) as client:
        yield client


class TestExceptionHandlers:
    async def test_unhandled_error_is_generic_500(self, failing_client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "debug", False)
        response = await failing_client.get("/boom")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Erreur serveur"
        assert "secret" not in response.text

    async def test_missing_table_message(self, failing_client: AsyncClient):
        response = await failing_client.get("/db-boom")

        assert response.status_code == 500
        assert "migrations" in response.json()["error"]

    async def test_upstream_error_is_502(self, failing_client: AsyncClient):
        response = await failing_client.get("/upstream")

        assert response.status_code == 502
        assert response.json() == {
            "success": False,
            "error": "Erreur transcription: quota exceeded",
            "errors": [{"field": None, "message": "Erreur transcription: quota exceeded"}],
        }

    async def test_validation_error_is_400_with_field(self, failing_client: AsyncClient):
        response = await failing_client.get("/invalid")

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "montantHT"

    async def test_duplicate_is_409(self, failing_client: AsyncClient):
        response = await failing_client.get("/duplicate")

        assert response.status_code == 409
        assert "AM0028" in response.json()["error"]

    async def test_request_validation_is_400(self, client: AsyncClient):
        response = await client.get("/api/v1/factures", params={"page": 0})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Données invalides"
        assert data["errors"][0]["field"] == "query.page"

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.json() == {"status": "healthy"}


class TestSettings:
    def test_postgres_url_converted_to_asyncpg(self):
        s = Settings(database_url="postgres://u:p@db:5432/app")
        assert s.database_url == "postgresql+asyncpg://u:p@db:5432/app"

    def test_cors_origins_from_comma_separated_string(self):
        s = Settings(cors_allowed_origins="http://a.test, http://b.test,")
        assert s.cors_allowed_origins == ["http://a.test", "http://b.test"]

    def test_provider_flags(self):
        s = Settings(openrouter_api_key="  ", stripe_secret_key="sk_test_123")
        assert s.openrouter_configured is False
        assert s.stripe_configured is True
