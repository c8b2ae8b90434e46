from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.database.base import Base
from src.core.database import get_db
from src.integrations.openrouter import ExtractionResult, TranscriptionResult, get_ai_client
from src.integrations.stripe_payments import PaymentLinkResult, get_payment_link_service
from src.main import app
from src.modules.clients.models import Client
from src.modules.invoices.models import Facture

# In-memory SQLite, one database per test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeAIClient:
    """Stands in for OpenRouterClient; records what it was asked."""

    def __init__(self):
        self.is_configured = True
        self.transcription = TranscriptionResult(ok=True, text="Facture dossier AM0028, 1500 euros, bilan annuel")
        self.extraction = ExtractionResult(
            ok=True,
            case_ref="AM0028",
            base_amount=Decimal("1500"),
            description="Bilan annuel",
            raw_model_output='{"numDossier": "AM0028", "montantHT": 1500, "prestation": "Bilan annuel"}',
        )
        self.transcribe_calls: list[tuple[bytes, str, str]] = []
        self.extract_calls: list[str] = []

    async def transcribe(self, audio: bytes, filename: str = "recording.webm", content_type: str = "audio/webm"):
        self.transcribe_calls.append((audio, filename, content_type))
        return self.transcription

    async def extract_fields(self, transcript: str):
        self.extract_calls.append(transcript)
        return self.extraction


class FakePaymentLinks:
    def __init__(self):
        self.is_configured = False
        self.result = PaymentLinkResult(
            ok=True,
            url="https://buy.stripe.com/test_abc",
            payment_link_id="plink_123",
        )
        self.calls: list[dict] = []

    async def create_payment_link(self, *, total_amount, invoice_number, payee_name, description):
        self.calls.append(
            {
                "total_amount": total_amount,
                "invoice_number": invoice_number,
                "payee_name": payee_name,
                "description": description,
            }
        )
        return self.result


@pytest.fixture
async def test_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_ai() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
def fake_payments() -> FakePaymentLinks:
    return FakePaymentLinks()


@pytest.fixture
async def client(
    db_session: AsyncSession, fake_ai: FakeAIClient, fake_payments: FakePaymentLinks
) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with database and external providers overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    app.dependency_overrides[get_payment_link_service] = lambda: fake_payments

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def sample_client(db_session: AsyncSession) -> Client:
    client = Client(
        num_dossier="AM0028",
        raison_sociale="Atelier Martin SARL",
        adresse="12 rue des Tanneurs, 69002 Lyon",
        siret="81234567800019",
        domaine_activite="Menuiserie",
    )
    db_session.add(client)
    await db_session.commit()
    await db_session.refresh(client)
    return client


@pytest.fixture
async def sample_facture(db_session: AsyncSession, sample_client: Client) -> Facture:
    facture = Facture(
        numero_sequentiel=1,
        prefixe="FA-2026-",
        numero_complet="FA-2026-0001",
        prestation="Bilan annuel 2025",
        montant_ht=Decimal("1500.00"),
        taux_tva=Decimal("20.00"),
        montant_tva=Decimal("300.00"),
        montant_ttc=Decimal("1800.00"),
        stripe_payment_link="https://buy.stripe.com/test_abc",
        stripe_payment_id="plink_123",
        client_id=sample_client.id,
    )
    db_session.add(facture)
    await db_session.commit()
    await db_session.refresh(facture, attribute_names=["client", "date_emission"])
    return facture
