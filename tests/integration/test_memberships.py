"""Integration tests for the membership endpoints."""

import asyncio
from datetime import datetime, timedelta

import pytest
from libs.common.datetime_utils import utc_now
from services.studio_service.models import Membership
from sqlalchemy import func, select
from tests.factories import bearer, register_user


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


async def _purchase(client, headers, **body):
    return await client.post("/api/memberships", json=body, headers=headers)


async def _membership_rows(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(Membership))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_plans_is_public(client):
    response = await client.get("/api/memberships/plans")

    assert response.status_code == 200
    plans = {p["plan_id"]: p for p in response.json()["plans"]}
    assert set(plans) == {"monthly", "quarterly", "half-year", "yearly"}
    assert plans["yearly"]["amount"] == 2256
    assert plans["yearly"]["duration_days"] == 365
    assert plans["monthly"]["currency"] == "CNY"


# ---------------------------------------------------------------------------
# Purchase
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "plan_id,amount,days",
    [("monthly", 188, 30), ("half-year", 1128, 180), ("yearly", 2256, 365)],
)
async def test_purchase_sets_amount_and_expiry(client, auth_headers, plan_id, amount, days):
    before = utc_now()
    response = await _purchase(client, auth_headers, planId=plan_id)
    after = utc_now()

    assert response.status_code == 201, response.text
    membership = response.json()["membership"]
    assert membership["plan_id"] == plan_id
    assert membership["amount"] == amount
    assert membership["currency"] == "CNY"
    assert membership["status"] == "active"
    assert membership["is_active"] is True

    expires_at = _parse(membership["expires_at"])
    assert before + timedelta(days=days) - timedelta(seconds=1) <= expires_at
    assert expires_at <= after + timedelta(days=days) + timedelta(seconds=1)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_purchase_defaults_provider_and_generates_reference(client, auth_headers):
    response = await _purchase(client, auth_headers, planId="monthly")

    membership = response.json()["membership"]
    assert membership["provider"] == "manual"
    assert len(membership["transaction_id"]) == 36


@pytest.mark.asyncio
@pytest.mark.integration
async def test_purchase_records_reference_provider_and_payload(client, auth_headers):
    response = await _purchase(
        client,
        auth_headers,
        planId="quarterly",
        paymentReference="  pay-123  ",
        provider="alipay",
        rawPayload={"trade_no": "T1"},
    )

    membership = response.json()["membership"]
    assert membership["transaction_id"] == "pay-123"
    assert membership["provider"] == "alipay"
    assert membership["raw_payload"] == {"trade_no": "T1"}


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("reference", ["", "   ", 12345, None])
async def test_blank_or_non_string_reference_is_replaced(client, auth_headers, reference):
    response = await _purchase(
        client, auth_headers, planId="monthly", paymentReference=reference
    )

    assert response.status_code == 201
    transaction_id = response.json()["membership"]["transaction_id"]
    assert transaction_id.strip()
    assert transaction_id != str(reference)


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("body", [{}, {"planId": ""}, {"planId": None}])
async def test_missing_plan_is_rejected(client, auth_headers, body):
    response = await client.post("/api/memberships", json=body, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "planId is required"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_non_string_plan_is_rejected(client, auth_headers, db_session):
    response = await _purchase(client, auth_headers, planId=30)

    assert response.status_code == 400
    assert await _membership_rows(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_plan_is_rejected(client, auth_headers, db_session):
    response = await _purchase(client, auth_headers, planId="lifetime")

    assert response.status_code == 400
    assert response.json() == {
        "message": "Invalid membership plan selected",
        "code": "UNKNOWN_PLAN",
    }
    assert await _membership_rows(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_purchase_requires_auth(client):
    response = await client.post("/api/memberships", json={"planId": "monthly"})
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Renewal semantics
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_renewal_overwrites_the_single_row(client, auth_headers, db_session):
    first = await _purchase(
        client, auth_headers, planId="monthly", paymentReference="ref-a"
    )
    second = await _purchase(
        client, auth_headers, planId="yearly", paymentReference="ref-b"
    )

    assert first.status_code == 201
    assert second.status_code == 201
    renewed = second.json()["membership"]
    assert renewed["id"] == first.json()["membership"]["id"]
    assert renewed["transaction_id"] == "ref-b"
    assert renewed["plan_id"] == "yearly"
    assert await _membership_rows(db_session) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sequential_purchases_last_writer_wins(client, auth_headers):
    """The stored row always reflects the most recent purchase."""
    purchases = [("seq-1", "yearly"), ("seq-2", "monthly"), ("seq-3", "quarterly")]
    for reference, plan_id in purchases:
        response = await _purchase(
            client, auth_headers, planId=plan_id, paymentReference=reference
        )
        assert response.status_code == 201

    current = await client.get("/api/memberships/me", headers=auth_headers)

    membership = current.json()["membership"]
    assert membership["transaction_id"] == "seq-3"
    assert membership["plan_id"] == "quarterly"
    assert membership["amount"] == 564


@pytest.mark.asyncio
@pytest.mark.integration
async def test_renewal_without_payload_keeps_previous_payload(client, auth_headers):
    await _purchase(client, auth_headers, planId="monthly", rawPayload={"x": 1})
    renewed = await _purchase(client, auth_headers, planId="monthly")

    assert renewed.json()["membership"]["raw_payload"] == {"x": 1}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_renewal_with_same_reference_is_allowed(client, auth_headers):
    await _purchase(client, auth_headers, planId="monthly", paymentReference="ref-a")
    again = await _purchase(
        client, auth_headers, planId="monthly", paymentReference="ref-a"
    )

    assert again.status_code == 201


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reference_used_by_another_user_conflicts(client, auth_headers):
    await _purchase(client, auth_headers, planId="monthly", paymentReference="shared")
    token, _ = await register_user(client, username="bob", email="bob@example.com")

    response = await _purchase(
        client, bearer(token), planId="monthly", paymentReference="shared"
    )

    assert response.status_code == 409
    assert response.json()["code"] == "TRANSACTION_CONFLICT"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_concurrent_purchases_leave_one_row(client, auth_headers, db_session):
    responses = await asyncio.gather(
        _purchase(client, auth_headers, planId="monthly", paymentReference="c-1"),
        _purchase(client, auth_headers, planId="yearly", paymentReference="c-2"),
    )

    assert [r.status_code for r in responses] == [201, 201]
    assert await _membership_rows(db_session) == 1

    current = await client.get("/api/memberships/me", headers=auth_headers)
    assert current.json()["membership"]["transaction_id"] in {"c-1", "c-2"}


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_my_membership_is_null_before_purchase(client, auth_headers):
    response = await client.get("/api/memberships/me", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"membership": None}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_my_membership_after_purchase(client, auth_headers):
    await _purchase(client, auth_headers, planId="quarterly")

    response = await client.get("/api/memberships/me", headers=auth_headers)

    membership = response.json()["membership"]
    assert membership["plan_id"] == "quarterly"
    assert membership["amount"] == 564


# ---------------------------------------------------------------------------
# Field length limits
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_overlong_reference_is_rejected(client, auth_headers, db_session):
    response = await _purchase(
        client, auth_headers, planId="monthly", paymentReference="r" * 256
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert await _membership_rows(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reference_length_is_measured_after_trimming(client, auth_headers):
    reference = "r" * 255
    response = await _purchase(
        client, auth_headers, planId="monthly", paymentReference=f"  {reference}  "
    )

    assert response.status_code == 201
    assert response.json()["membership"]["transaction_id"] == reference


@pytest.mark.asyncio
@pytest.mark.integration
async def test_overlong_provider_is_rejected(client, auth_headers, db_session):
    response = await _purchase(
        client, auth_headers, planId="monthly", provider="p" * 51
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert await _membership_rows(db_session) == 0
