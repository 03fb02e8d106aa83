from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from membership_app.core.exceptions import (
    AlreadyCanceled,
    DuplicateMembership,
    MembershipNotFound,
    UserNotFound,
)
from membership_app.models.membership import Membership
from membership_app.models.setting import Setting
from membership_app.services.card_assignment import CardAssignmentService
from membership_app.services.card_ranges import CardRangeService
from membership_app.services.membership_service import SYSTEM_ACTOR, MembershipService
from membership_app.services.settings_service import set_membership_fee
from membership_app.utils.enums import MembershipStatus, PaymentStatus, SystemState

pytestmark = pytest.mark.anyio


async def _memberships_of(db_session, user_id):
    stmt = (
        select(Membership)
        .where(Membership.user_id == user_id)
        .order_by(Membership.created_at.asc())
        .execution_options(populate_existing=True)
    )
    return list((await db_session.execute(stmt)).scalars().all())


async def _lapsed(make_user, make_membership, utc_now, number: str):
    user = await make_user()
    membership = await make_membership(
        user,
        status=MembershipStatus.active,
        membership_number=number,
        start_date=utc_now - timedelta(days=366),
        end_date=utc_now - timedelta(days=1),
    )
    return user, membership


# Creation for payment


async def test_create_for_payment_snapshots_the_fee(db_session, make_user):
    user = await make_user()
    await set_membership_fee(db_session, 3000)

    membership = await MembershipService(db_session).create_for_payment(user.id)

    assert membership.status == MembershipStatus.pending
    assert membership.payment_status == PaymentStatus.pending
    assert membership.payment_amount == 3000


async def test_create_for_payment_refuses_a_second_attempt(db_session, make_user):
    user = await make_user()
    service = MembershipService(db_session)
    await service.create_for_payment(user.id)

    with pytest.raises(DuplicateMembership):
        await service.create_for_payment(user.id)

    assert len(await _memberships_of(db_session, user.id)) == 1


@pytest.mark.parametrize(
    "status, payment_status, number",
    [
        (MembershipStatus.active, PaymentStatus.succeeded, "1"),
        (MembershipStatus.pending, PaymentStatus.succeeded, None),
    ],
)
async def test_create_for_payment_blocked_by_live_membership(
    db_session, make_user, make_membership, utc_now, status, payment_status, number
):
    user = await make_user()
    await make_membership(
        user,
        status=status,
        payment_status=payment_status,
        membership_number=number,
        end_date=utc_now + timedelta(days=10) if number else None,
    )

    with pytest.raises(DuplicateMembership):
        await MembershipService(db_session).create_for_payment(user.id)


async def test_create_for_payment_allowed_after_failed_payment(db_session, make_user, make_membership):
    user = await make_user()
    await make_membership(user, payment_status=PaymentStatus.failed)

    membership = await MembershipService(db_session).create_for_payment(user.id)

    assert membership.payment_status == PaymentStatus.pending


async def test_create_for_payment_unknown_user(db_session):
    with pytest.raises(UserNotFound):
        await MembershipService(db_session).create_for_payment(uuid.uuid4())


async def test_expired_membership_allows_new_purchase(db_session, make_user, make_membership, utc_now):
    user, _ = await _lapsed(make_user, make_membership, utc_now, "5")
    service = MembershipService(db_session)

    with pytest.raises(DuplicateMembership):
        await service.create_for_payment(user.id)

    await service.sweep_expirations()
    membership = await service.create_for_payment(user.id)

    assert membership.status == MembershipStatus.pending


# Expiration sweep


async def test_sweep_retires_numbers_and_is_idempotent(db_session, make_user, make_membership, utc_now):
    user, lapsed = await _lapsed(make_user, make_membership, utc_now, "5")
    current = await make_user()
    await make_membership(
        current,
        status=MembershipStatus.active,
        membership_number="6",
        end_date=utc_now + timedelta(days=1),
    )
    service = MembershipService(db_session)

    first = await service.sweep_expirations()
    second = await service.sweep_expirations()

    assert first.processed == 1
    assert first.memberships[0].membership_id == lapsed.id
    assert first.memberships[0].retired_number == "5"
    assert second.processed == 0

    (expired,) = await _memberships_of(db_session, user.id)
    assert expired.status == MembershipStatus.expired
    assert expired.membership_number is None
    assert expired.previous_membership_number == "5"
    assert expired.start_date is None and expired.end_date is None
    assert expired.updated_by == SYSTEM_ACTOR

    (untouched,) = await _memberships_of(db_session, current.id)
    assert untouched.membership_number == "6"


async def test_retired_number_returns_to_the_pool(
    db_session, make_range, make_user, make_membership, make_paid_user, utc_now
):
    await make_range(5, 6)
    await _lapsed(make_user, make_membership, utc_now, "5")
    await MembershipService(db_session).sweep_expirations()
    newcomer = await make_paid_user()

    assert await CardRangeService(db_session).available_numbers() == ["5", "6"]
    result = await CardAssignmentService(db_session).assign_auto([newcomer.id])

    assert [a.membership_number for a in result.assigned] == ["5"]


async def test_sweep_leaves_the_callers_pending_work_uncommitted(
    db_session, session_factory, make_user, make_membership, utc_now
):
    await _lapsed(make_user, make_membership, utc_now, "5")
    db_session.add(Setting(key="UNSAVED", value="1"))

    result = await MembershipService(db_session).sweep_expirations()

    assert result.processed == 1
    async with session_factory() as other:
        assert await other.get(Setting, "UNSAVED") is None


# Cancellation


async def test_cancel_retires_number(db_session, make_user, make_membership, utc_now):
    user = await make_user()
    membership = await make_membership(
        user,
        status=MembershipStatus.active,
        membership_number="9",
        end_date=utc_now + timedelta(days=100),
    )
    service = MembershipService(db_session)

    canceled = await service.cancel(membership.id, admin_id="admin-1")

    assert canceled.status == MembershipStatus.canceled
    assert canceled.membership_number is None
    assert canceled.previous_membership_number == "9"
    assert canceled.updated_by == "admin-1"
    with pytest.raises(AlreadyCanceled):
        await service.cancel(membership.id, admin_id="admin-1")


async def test_cancel_unknown_membership(db_session):
    with pytest.raises(MembershipNotFound):
        await MembershipService(db_session).cancel(uuid.uuid4(), admin_id="admin-1")


# Renewal


async def test_renewal_conserves_number_after_expiry(
    db_session, make_range, make_paid_user
):
    await make_range(1, 10)
    user = await make_paid_user()
    batch = await CardAssignmentService(db_session).assign_batch("", "7", "7", [user.id])
    assert [a.membership_number for a in batch.assigned] == ["7"]
    (assigned,) = await _memberships_of(db_session, user.id)
    # Move the period into the past and let the sweep retire the number
    assigned.end_date = assigned.end_date - timedelta(days=400)
    await db_session.commit()
    service = MembershipService(db_session)
    await service.sweep_expirations()

    result = await service.renew_with_conservation(user.id, admin_id="admin-1")

    assert result.is_renewal
    assert result.conserved_number == "7"
    assert result.membership.status == MembershipStatus.active
    assert result.membership.membership_number == "7"
    assert result.membership.payment_status == PaymentStatus.succeeded
    assert result.membership.end_date - result.membership.start_date == timedelta(days=365)

    summary = await service.get_membership_summary(user.id)
    assert summary.system_state == SystemState.active
    assert summary.membership_number == "7"


async def test_renewal_of_active_member_moves_the_number(db_session, make_user, make_membership, utc_now):
    user = await make_user()
    await make_membership(
        user,
        status=MembershipStatus.active,
        membership_number="3",
        end_date=utc_now + timedelta(days=5),
    )

    result = await MembershipService(db_session).renew_with_conservation(user.id)

    old, new = await _memberships_of(db_session, user.id)
    assert old.status == MembershipStatus.expired
    assert old.membership_number is None
    assert old.previous_membership_number == "3"
    assert new.id == result.membership.id
    assert new.membership_number == "3"


async def test_renewal_after_number_was_reissued_awaits_a_new_one(
    db_session, make_range, make_user, make_membership, make_paid_user, utc_now
):
    await make_range(5, 5)
    user, _ = await _lapsed(make_user, make_membership, utc_now, "5")
    service = MembershipService(db_session)
    await service.sweep_expirations()
    newcomer = await make_paid_user()
    await CardAssignmentService(db_session).assign_auto([newcomer.id])

    result = await service.renew_with_conservation(user.id)

    assert result.is_renewal
    assert result.conserved_number is None
    assert result.membership.status == MembershipStatus.pending
    assert result.membership.membership_number is None


async def test_renewal_without_history_awaits_a_number(db_session, make_user):
    user = await make_user()

    result = await MembershipService(db_session).renew_with_conservation(user.id)

    assert not result.is_renewal
    assert result.conserved_number is None
    assert result.membership.status == MembershipStatus.pending
    assert result.membership.payment_status == PaymentStatus.succeeded
    rows = await CardAssignmentService(db_session).list_users_awaiting_card()
    assert [row["user_id"] for row in rows] == [user.id]


async def test_renewal_refused_while_awaiting_a_number(db_session, make_paid_user):
    user = await make_paid_user()

    with pytest.raises(DuplicateMembership):
        await MembershipService(db_session).renew_with_conservation(user.id)


async def test_renewal_unknown_user(db_session):
    with pytest.raises(UserNotFound):
        await MembershipService(db_session).renew_with_conservation(uuid.uuid4())


# Payment attempt reset


async def test_reset_payment_attempt(db_session, make_user, make_membership):
    user = await make_user()
    await make_membership(user, payment_status=PaymentStatus.pending, payment_provider_id="cs_123")
    service = MembershipService(db_session)

    assert (await service.get_membership_summary(user.id)).system_state == SystemState.processing_payment

    membership = await service.reset_payment_attempt(user.id)

    assert membership.payment_provider_id is None
    assert (await service.get_membership_summary(user.id)).system_state == SystemState.profile_complete
    assert await service.reset_payment_attempt(user.id) is None


# Summary


async def test_summary_without_membership(db_session, make_user):
    user = await make_user(complete_profile=False)

    summary = await MembershipService(db_session).get_membership_summary(user.id)

    assert summary.system_state == SystemState.no_membership
    assert summary.label == "Interrotto"
    assert summary.can_purchase


async def test_summary_unknown_user(db_session):
    with pytest.raises(UserNotFound):
        await MembershipService(db_session).get_membership_summary(uuid.uuid4())
