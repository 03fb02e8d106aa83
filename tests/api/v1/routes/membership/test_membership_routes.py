from __future__ import annotations

import pytest

from membership_app.api.dependencies.auth import get_current_user
from membership_app.core.security import create_access_token
from membership_app.utils.enums import PaymentStatus

pytestmark = pytest.mark.anyio


async def test_purchase_flow(client, make_user, login_as):
    login_as(await make_user())

    status = await client.get("/api/v1/membership/status")
    assert status.status_code == 200
    assert status.json()["data"]["system_state"] == "S1_PROFILE_COMPLETE"
    assert status.json()["data"]["can_purchase"] is True

    purchase = await client.post("/api/v1/membership/purchase")
    assert purchase.status_code == 201
    assert purchase.json()["data"]["payment_status"] == "pending"
    assert purchase.json()["data"]["payment_amount"] == 2500

    duplicate = await client.post("/api/v1/membership/purchase")
    assert duplicate.status_code == 409
    assert duplicate.json()["error_code"] == "DUPLICATE_MEMBERSHIP"

    status = await client.get("/api/v1/membership/status")
    assert status.json()["data"]["can_purchase"] is False


async def test_cancel_payment(client, make_user, make_membership, login_as):
    user = await make_user()
    await make_membership(user, payment_status=PaymentStatus.pending, payment_provider_id="cs_1")
    login_as(user)

    status = await client.get("/api/v1/membership/status")
    assert status.json()["data"]["system_state"] == "S2_PROCESSING_PAYMENT"

    canceled = await client.post("/api/v1/membership/cancel-payment")
    assert canceled.status_code == 200
    assert canceled.json()["data"]["payment_status"] == "pending"

    nothing = await client.post("/api/v1/membership/cancel-payment")
    assert nothing.json()["msg"] == "No payment in progress"


async def test_status_with_bearer_token(client, test_app, make_user):
    user = await make_user()
    test_app.dependency_overrides.pop(get_current_user)

    response = await client.get(
        "/api/v1/membership/status",
        headers={"Authorization": f"Bearer {create_access_token(str(user.id))}"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["label"] == "In attesa di pagamento"


async def test_status_rejects_invalid_token(client, test_app):
    test_app.dependency_overrides.pop(get_current_user)

    response = await client.get(
        "/api/v1/membership/status", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401
    assert response.json()["status"] == "error"
