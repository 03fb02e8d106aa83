from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from membership_app.services.membership_state import (
    can_purchase,
    classify,
    is_profile_complete,
    summarize,
)
from membership_app.utils.enums import MembershipStatus, PaymentStatus, SystemState

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _profile(**overrides):
    fields = dict(
        first_name="Mario",
        last_name="Rossi",
        birth_date=date(1990, 5, 17),
        address="Via Roma 1",
        city="Bologna",
        postal_code="40100",
        province="BO",
        privacy_consent=True,
        data_consent=True,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _membership(
    status=MembershipStatus.pending,
    payment_status=PaymentStatus.pending,
    membership_number=None,
    end_date=None,
    payment_provider_id=None,
):
    return SimpleNamespace(
        id="m-1",
        status=status,
        payment_status=payment_status,
        membership_number=membership_number,
        previous_membership_number=None,
        start_date=end_date - timedelta(days=365) if end_date else None,
        end_date=end_date,
        payment_provider_id=payment_provider_id,
    )


def test_profile_completeness_requires_fields_and_consents():
    assert is_profile_complete(_profile())
    assert not is_profile_complete(None)
    assert not is_profile_complete(_profile(city=""))
    assert not is_profile_complete(_profile(data_consent=False))


@pytest.mark.parametrize(
    "membership, profile, expected",
    [
        (None, None, SystemState.no_membership),
        (None, _profile(), SystemState.profile_complete),
        (_membership(), _profile(), SystemState.profile_complete),
        (_membership(), _profile(privacy_consent=False), SystemState.no_membership),
        (_membership(payment_provider_id="cs_1"), _profile(), SystemState.processing_payment),
        (_membership(payment_status=PaymentStatus.failed), _profile(), SystemState.payment_failed),
        (_membership(payment_status=PaymentStatus.canceled), _profile(), SystemState.payment_failed),
        (_membership(payment_status=PaymentStatus.succeeded), _profile(), SystemState.awaiting_number),
        (
            _membership(
                status=MembershipStatus.active,
                payment_status=PaymentStatus.succeeded,
                membership_number="42",
                end_date=NOW + timedelta(days=30),
            ),
            _profile(),
            SystemState.active,
        ),
        (
            _membership(
                status=MembershipStatus.active,
                payment_status=PaymentStatus.succeeded,
                membership_number="42",
                end_date=NOW - timedelta(seconds=1),
            ),
            _profile(),
            SystemState.expired,
        ),
        (
            _membership(status=MembershipStatus.expired, payment_status=PaymentStatus.succeeded),
            _profile(),
            SystemState.expired,
        ),
        (
            # Canceled wins over a succeeded payment
            _membership(status=MembershipStatus.canceled, payment_status=PaymentStatus.succeeded),
            _profile(),
            SystemState.canceled,
        ),
        (
            # Number without a period cannot be classified
            _membership(
                status=MembershipStatus.active,
                payment_status=PaymentStatus.succeeded,
                membership_number="42",
            ),
            _profile(),
            SystemState.unknown,
        ),
    ],
)
def test_classify(membership, profile, expected):
    assert classify(membership, profile, NOW) == expected


def test_active_until_the_end_date_inclusive():
    membership = _membership(
        status=MembershipStatus.active,
        payment_status=PaymentStatus.succeeded,
        membership_number="42",
        end_date=NOW,
    )

    assert classify(membership, _profile(), NOW) == SystemState.active


def test_classify_accepts_naive_end_date():
    membership = _membership(
        status=MembershipStatus.active,
        payment_status=PaymentStatus.succeeded,
        membership_number="42",
        end_date=(NOW + timedelta(days=1)).replace(tzinfo=None),
    )

    assert classify(membership, _profile(), NOW) == SystemState.active


@pytest.mark.parametrize(
    "state, has_membership, expected",
    [
        (SystemState.no_membership, False, True),
        (SystemState.profile_complete, False, True),
        (SystemState.profile_complete, True, False),
        (SystemState.processing_payment, True, False),
        (SystemState.payment_failed, True, True),
        (SystemState.awaiting_number, True, False),
        (SystemState.active, True, False),
        (SystemState.expired, True, True),
        (SystemState.canceled, True, False),
        (SystemState.unknown, True, False),
    ],
)
def test_can_purchase(state, has_membership, expected):
    assert can_purchase(state, has_membership) is expected


def test_summary_of_active_membership():
    membership = _membership(
        status=MembershipStatus.active,
        payment_status=PaymentStatus.succeeded,
        membership_number="42",
        end_date=NOW + timedelta(days=10),
    )

    summary = summarize(membership, _profile(), NOW)

    assert summary.system_state == SystemState.active
    assert summary.label == "Attivo"
    assert summary.has_active_membership
    assert not summary.can_purchase
    assert "42" in summary.message


def test_summary_of_unknown_state_hides_details():
    membership = _membership(
        status=MembershipStatus.active,
        payment_status=PaymentStatus.succeeded,
        membership_number="42",
    )

    summary = summarize(membership, _profile(), NOW)

    assert summary.system_state == SystemState.unknown
    assert summary.label == "Stato sconosciuto"
    assert summary.membership_number is None
    assert not summary.can_purchase
