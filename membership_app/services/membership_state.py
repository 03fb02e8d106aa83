"""Membership lifecycle classification.

Maps the persisted facts of a member's latest membership (plus profile
completeness) to exactly one ``SystemState``. The checks run in a fixed order
and the first match wins, because some facts can be true at the same time
(e.g. a canceled membership still carrying a succeeded payment).

Unrecognized combinations never raise: they classify as ``SystemState.unknown``,
are logged as critical and never allow a purchase.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from membership_app.core.logging_config import get_logger
from membership_app.utils.datetime_utils import ensure_utc, get_current_utc_datetime
from membership_app.utils.enums import MembershipStatus, PaymentStatus, SystemState


logger = get_logger("membership_state")


PROFILE_REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "birth_date",
    "address",
    "city",
    "postal_code",
    "province",
)

STATE_LABELS = {
    SystemState.no_membership: "Interrotto",
    SystemState.profile_complete: "In attesa di pagamento",
    SystemState.processing_payment: "In attesa di pagamento",
    SystemState.payment_failed: "Pagamento fallito",
    SystemState.awaiting_number: "Pagato",
    SystemState.active: "Attivo",
    SystemState.expired: "Scaduto",
    SystemState.canceled: "Cancellato",
    SystemState.unknown: "Stato sconosciuto",
}

STATE_MESSAGES = {
    SystemState.no_membership: "No active membership. Complete your profile and purchase a membership to get started.",
    SystemState.profile_complete: "Profile complete. Please proceed with payment.",
    SystemState.processing_payment: "Payment in progress. Please complete the payment with the provider.",
    SystemState.payment_failed: "Payment failed. Please try again.",
    SystemState.awaiting_number: "Payment received! Your membership number will be assigned soon.",
    SystemState.active: "Active membership.",
    SystemState.expired: "Your membership has expired. Purchase a new membership to continue.",
    SystemState.canceled: "Your membership has been canceled. Please contact the association.",
    SystemState.unknown: "Status unknown. Please contact support.",
}


@dataclass(frozen=True)
class MembershipSummary:
    system_state: SystemState
    label: str
    has_active_membership: bool
    membership_number: Optional[str]
    previous_membership_number: Optional[str]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    profile_complete: bool
    can_purchase: bool
    message: str


def is_profile_complete(profile: Any) -> bool:
    """All personal fields filled in and both consents given."""
    if profile is None:
        return False
    if not all(getattr(profile, name, None) for name in PROFILE_REQUIRED_FIELDS):
        return False
    return bool(profile.privacy_consent) and bool(profile.data_consent)


def classify(membership: Any, profile: Any, now: Optional[datetime] = None) -> SystemState:
    """First matching rule wins; see module docstring."""
    profile_complete = is_profile_complete(profile)

    if membership is None:
        return SystemState.profile_complete if profile_complete else SystemState.no_membership

    now = ensure_utc(now or get_current_utc_datetime())
    status = membership.status
    payment_status = membership.payment_status
    number = membership.membership_number
    end_date = ensure_utc(membership.end_date)

    if status == MembershipStatus.canceled:
        return SystemState.canceled
    if status == MembershipStatus.expired:
        return SystemState.expired
    if payment_status in (PaymentStatus.failed, PaymentStatus.canceled):
        return SystemState.payment_failed
    if payment_status == PaymentStatus.pending:
        if membership.payment_provider_id and not number:
            return SystemState.processing_payment
        # A pending attempt exists either way; incomplete profiles stay blocked
        return SystemState.profile_complete if profile_complete else SystemState.no_membership
    if payment_status == PaymentStatus.succeeded and not number:
        return SystemState.awaiting_number
    if number and end_date is not None:
        if status == MembershipStatus.active and end_date >= now:
            return SystemState.active
        if end_date < now:
            # Lapsed but not yet swept
            return SystemState.expired

    logger.critical(
        "Unrecognized membership state",
        extra={
            "membership_id": str(getattr(membership, "id", None)),
            "status": getattr(status, "value", status),
            "payment_status": getattr(payment_status, "value", payment_status),
            "has_number": bool(number),
            "end_date": end_date.isoformat() if end_date else None,
        },
    )
    return SystemState.unknown


def can_purchase(state: SystemState, has_membership: bool) -> bool:
    """Whether a new purchase may start; unknown always fails closed."""
    if state in (SystemState.no_membership, SystemState.profile_complete):
        # A pending attempt already exists when a row is present
        return not has_membership
    return state in (SystemState.payment_failed, SystemState.expired)


def summarize(membership: Any, profile: Any, now: Optional[datetime] = None) -> MembershipSummary:
    """Classify and package the result for display."""
    state = classify(membership, profile, now)
    has_membership = membership is not None
    message = STATE_MESSAGES[state]

    if state == SystemState.unknown or not has_membership:
        number = previous = start_date = end_date = None
    else:
        number = membership.membership_number
        previous = membership.previous_membership_number
        start_date = membership.start_date
        end_date = membership.end_date
        if state == SystemState.active:
            message = f"Active membership. Card number: {number}"

    return MembershipSummary(
        system_state=state,
        label=STATE_LABELS[state],
        has_active_membership=state == SystemState.active,
        membership_number=number,
        previous_membership_number=previous,
        start_date=start_date,
        end_date=end_date,
        profile_complete=is_profile_complete(profile),
        can_purchase=can_purchase(state, has_membership),
        message=message,
    )
