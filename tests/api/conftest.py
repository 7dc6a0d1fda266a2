import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

from hoa_billing.api.deps import get_payment_service, get_statement_service, get_wallet_service
from hoa_billing.core.config import settings
from hoa_billing.main import app
from hoa_billing.services.statement_service import StatementService
from hoa_billing.services.wallet_service import WalletService


def bearer(user_id: str, role: str) -> dict:
    token = jwt.encode({"sub": user_id, "role": role}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return bearer("ADM-1", "admin")


@pytest.fixture
def officer_headers():
    return bearer("OFF-1", "officer")


@pytest.fixture
def homeowner_headers():
    return bearer("USR-1", "homeowner")


@pytest_asyncio.fixture
async def client(payment_service, statement_repo, property_repo, wallet_repo):
    """API client whose services run on the in-memory repositories."""
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    app.dependency_overrides[get_statement_service] = lambda: StatementService(
        statements=statement_repo, properties=property_repo
    )
    app.dependency_overrides[get_wallet_service] = lambda: WalletService(wallets=wallet_repo)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
