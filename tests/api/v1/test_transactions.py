"""
Test payment and transaction endpoints
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from hoa_billing.api.deps import get_payment_service
from hoa_billing.core.exceptions import ConcurrencyConflictError
from hoa_billing.main import app


@pytest.mark.asyncio
async def test_staff_payment(client, seeded_statement, admin_headers):
    """Staff payments are completed and allocated proportionally"""
    response = await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "All", "method": "Cash", "amount": "450.00"},
        headers=admin_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["transaction"]["trn_status"] == "completed"
    assert data["transaction"]["trn_amount"] == "450.00"
    assert data["statement"]["bll_paid_breakdown"] == {"water": "250.00", "hoa": "150.00", "garbage": "50.00"}
    assert data["statement"]["bll_pay_stat"] == "pending"
    assert data["statement"]["transactions_status"] == "pending"


@pytest.mark.asyncio
async def test_homeowner_payment_then_approval(client, seeded_statement, homeowner_headers, admin_headers):
    """Homeowner cash payments wait for staff approval"""
    response = await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "All", "method": "Cash"},
        headers=homeowner_headers
    )
    assert response.status_code == 201
    transaction = response.json()["transaction"]
    assert transaction["trn_status"] == "pending"
    assert transaction["trn_amount"] == "900.00"

    response = await client.put(
        f"/api/v1/transactions/{transaction['trn_id']}/status",
        json={"status": "completed"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["statement"]["transactions_status"] == "completed"


@pytest.mark.asyncio
async def test_homeowner_cannot_approve(client, homeowner_headers):
    response = await client.put(
        "/api/v1/transactions/CVT1/status",
        json={"status": "completed"},
        headers=homeowner_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_payment_requires_token(client, seeded_statement):
    response = await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "All", "method": "Cash", "amount": "10"}
    )

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_token(client, seeded_statement):
    response = await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "All", "method": "Cash", "amount": "10"},
        headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_statement(client, admin_headers):
    response = await client.post(
        "/api/v1/transactions/statements/CVB-missing",
        json={"purpose": "All", "method": "Cash", "amount": "10"},
        headers=admin_headers
    )

    assert response.status_code == 404
    assert "CVB-missing" in response.json()["detail"]


@pytest.mark.asyncio
async def test_invalid_purpose(client, seeded_statement, admin_headers):
    response = await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "Electricity", "method": "Cash", "amount": "10"},
        headers=admin_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_e_wallet_insufficient_funds(client, seeded_statement, wallet_repo, homeowner_headers):
    wallet_repo.add_wallet("USR-1", "100.00")

    response = await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "Water Bill", "method": "E-Wallet", "amount": "150.00"},
        headers=homeowner_headers
    )

    assert response.status_code == 400
    assert wallet_repo.wallets["USR-1"].balance == wallet_repo.wallets["USR-1"].history_total()


@pytest.mark.asyncio
async def test_conflict_maps_to_409(client, admin_headers):
    service = MagicMock()
    service.record_payment = AsyncMock(side_effect=ConcurrencyConflictError("Statement CVB0001 changed"))
    app.dependency_overrides[get_payment_service] = lambda: service

    response = await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "All", "method": "Cash", "amount": "10"},
        headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json() == {"detail": "Statement CVB0001 changed"}


@pytest.mark.asyncio
async def test_homeowner_only_lists_own_transactions(client, seeded_statement, admin_headers, homeowner_headers):
    await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "All", "method": "Cash", "amount": "10", "initiated_by": "USR-2"},
        headers=admin_headers
    )
    await client.post(
        "/api/v1/transactions/statements/CVB0001",
        json={"purpose": "All", "method": "Cash", "amount": "20"},
        headers=homeowner_headers
    )

    response = await client.get("/api/v1/transactions/?user_id=USR-2", headers=homeowner_headers)

    assert response.status_code == 200
    assert [t["trn_user_init"] for t in response.json()] == ["USR-1"]

    response = await client.get("/api/v1/transactions/", headers=admin_headers)

    assert len(response.json()) == 2
