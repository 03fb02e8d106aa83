"""Membership lifecycle transitions.

Creation for payment, the daily expiration sweep, administrative
cancellation and renewal with number conservation. A member keeps at most one
live (pending or active) membership; expired and canceled rows are history
and a renewal always creates a new row.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from membership_app.core.config import settings
from membership_app.core.exceptions import (
    AlreadyCanceled,
    DuplicateMembership,
    MembershipNotFound,
    NumberAlreadyAssigned,
    UserNotFound,
)
from membership_app.core.logging_config import get_logger
from membership_app.db.deps import atomic
from membership_app.models.membership import Membership
from membership_app.models.user import User
from membership_app.models.user_profile import UserProfile
from membership_app.services.card_ranges import lock_registry
from membership_app.services.membership_state import MembershipSummary, summarize
from membership_app.services.settings_service import get_membership_fee
from membership_app.utils.datetime_utils import (
    ensure_utc,
    get_current_utc_datetime,
    membership_period,
)
from membership_app.utils.enums import MembershipStatus, PaymentStatus


logger = get_logger("membership_service")

SYSTEM_ACTOR = "system"


@dataclass
class ExpiredMembership:
    membership_id: uuid.UUID
    user_id: uuid.UUID
    retired_number: Optional[str]


@dataclass
class SweepResult:
    processed: int = 0
    memberships: List[ExpiredMembership] = field(default_factory=list)


@dataclass
class RenewalResult:
    membership: Membership
    is_renewal: bool
    conserved_number: Optional[str]


def retire_number(membership: Membership) -> Optional[str]:
    """Move the current number to ``previous_membership_number`` and clear the period."""
    number = membership.membership_number
    if number:
        membership.previous_membership_number = number
    membership.membership_number = None
    membership.start_date = None
    membership.end_date = None
    return number


class MembershipService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # Reads

    async def get_latest_membership(self, user_id: uuid.UUID) -> Optional[Membership]:
        stmt = (
            select(Membership)
            .where(Membership.user_id == user_id)
            .order_by(Membership.created_at.desc())
            .limit(1)
        )
        return (await self.db.execute(stmt)).scalars().first()

    async def get_membership_summary(
        self, user_id: uuid.UUID, now: Optional[datetime] = None
    ) -> MembershipSummary:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFound(user_id)

        profile = (
            await self.db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
        ).scalars().first()
        membership = await self.get_latest_membership(user_id)
        return summarize(membership, profile, now)

    # Transitions

    async def create_for_payment(self, user_id: uuid.UUID) -> Membership:
        """
        Open a PENDING/PENDING membership with the current fee snapshot.

        Refused while the user holds an active membership, a pending payment
        on a non-expired row, or a paid row still awaiting its number. Expired
        memberships never block a new attempt.
        """
        async with atomic(self.db):
            # Row lock serializes concurrent purchases by the same user
            user = (
                await self.db.execute(select(User).where(User.id == user_id).with_for_update())
            ).scalars().first()
            if user is None:
                raise UserNotFound(user_id)

            blocking = (
                await self.db.execute(
                    select(Membership.id)
                    .where(
                        Membership.user_id == user_id,
                        or_(
                            Membership.status == MembershipStatus.active,
                            and_(
                                Membership.status != MembershipStatus.expired,
                                Membership.payment_status == PaymentStatus.pending,
                            ),
                            and_(
                                Membership.status == MembershipStatus.pending,
                                Membership.payment_status == PaymentStatus.succeeded,
                            ),
                        ),
                    )
                    .limit(1)
                )
            ).first()
            if blocking is not None:
                raise DuplicateMembership(user_id)

            membership = Membership(
                user_id=user_id,
                status=MembershipStatus.pending,
                payment_status=PaymentStatus.pending,
                payment_amount=await get_membership_fee(self.db),
            )
            self.db.add(membership)
            await self.db.flush()

        logger.info(f"Membership {membership.id} created for payment by user {user_id}")
        return membership

    async def sweep_expirations(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Expire every active membership whose period has elapsed.

        Each membership is retired in its own transaction; the candidate is
        re-checked under lock so a concurrent run or renewal is not undone.
        Running it twice in a row changes nothing the second time.
        """
        now = ensure_utc(now or get_current_utc_datetime())
        result = SweepResult()

        candidate_ids = (
            await self.db.execute(
                select(Membership.id)
                .where(
                    Membership.status == MembershipStatus.active,
                    Membership.end_date < now,
                )
                .order_by(Membership.end_date.asc())
            )
        ).scalars().all()
        # End the read without committing anything the caller left pending
        await self.db.rollback()

        logger.info(f"Expiration sweep started: {len(candidate_ids)} candidates")
        for membership_id in candidate_ids:
            async with atomic(self.db):
                membership = (
                    await self.db.execute(
                        select(Membership)
                        .where(
                            Membership.id == membership_id,
                            Membership.status == MembershipStatus.active,
                            Membership.end_date < now,
                        )
                        .with_for_update()
                    )
                ).scalars().first()
                if membership is None:
                    continue

                retired = retire_number(membership)
                membership.status = MembershipStatus.expired
                membership.updated_by = SYSTEM_ACTOR
                await self.db.flush()

            result.memberships.append(
                ExpiredMembership(
                    membership_id=membership.id,
                    user_id=membership.user_id,
                    retired_number=retired,
                )
            )

        result.processed = len(result.memberships)
        logger.info(f"Expiration sweep finished: {result.processed} memberships expired")
        return result

    async def cancel(self, membership_id: uuid.UUID, admin_id: Optional[str]) -> Membership:
        """Administrative cancellation; retires the number like the sweep does."""
        async with atomic(self.db):
            membership = (
                await self.db.execute(
                    select(Membership).where(Membership.id == membership_id).with_for_update()
                )
            ).scalars().first()
            if membership is None:
                raise MembershipNotFound(membership_id)
            if membership.status == MembershipStatus.canceled:
                raise AlreadyCanceled(membership_id)

            retired = retire_number(membership)
            membership.status = MembershipStatus.canceled
            membership.updated_by = admin_id
            await self.db.flush()

        logger.info(
            f"Membership {membership_id} canceled by {admin_id}"
            + (f", number {retired} retired" if retired else "")
        )
        return membership

    async def renew_with_conservation(
        self, user_id: uuid.UUID, admin_id: Optional[str] = None
    ) -> RenewalResult:
        """
        Create the next membership period for a paid renewal.

        A member who ever held a card number gets that same number back and is
        active immediately; anyone else gets a paid row awaiting allocation.
        The rolling period starts now either way.
        """
        now = get_current_utc_datetime()

        async with atomic(self.db):
            await lock_registry(self.db)

            if await self.db.get(User, user_id) is None:
                raise UserNotFound(user_id)

            history = (
                await self.db.execute(
                    select(Membership)
                    .where(Membership.user_id == user_id)
                    .order_by(Membership.created_at.desc())
                    .with_for_update()
                )
            ).scalars().all()

            if any(
                m.status == MembershipStatus.pending
                and m.payment_status in (PaymentStatus.pending, PaymentStatus.succeeded)
                for m in history
            ):
                raise DuplicateMembership(user_id)

            source = next(
                (m for m in history if m.membership_number or m.previous_membership_number),
                None,
            )
            conserved = None
            if source is not None:
                conserved = source.membership_number or source.previous_membership_number
                conserved = await self._release_for_renewal(conserved, user_id, admin_id)

            start, end = membership_period(now, settings.MEMBERSHIP_DURATION_DAYS)
            membership = Membership(
                user_id=user_id,
                membership_number=conserved,
                status=MembershipStatus.active if conserved else MembershipStatus.pending,
                payment_status=PaymentStatus.succeeded,
                payment_amount=await get_membership_fee(self.db),
                start_date=start,
                end_date=end,
                card_assigned_at=now if conserved else None,
                updated_by=admin_id,
            )
            self.db.add(membership)
            try:
                await self.db.flush()
            except IntegrityError as exc:
                logger.error(f"Unique constraint rejected conserved number {conserved} for user {user_id}")
                raise NumberAlreadyAssigned([conserved] if conserved else []) from exc

        if conserved:
            logger.info(f"Renewal for user {user_id} conserved card number {conserved}")
        else:
            logger.info(f"Renewal for user {user_id} awaiting card number assignment")
        return RenewalResult(
            membership=membership,
            is_renewal=source is not None,
            conserved_number=conserved,
        )

    async def reset_payment_attempt(self, user_id: uuid.UUID) -> Optional[Membership]:
        """
        Forget an abandoned provider checkout so the user can retry.

        Returns the reset membership, or None when no payment was in progress.
        """
        async with atomic(self.db):
            membership = (
                await self.db.execute(
                    select(Membership)
                    .where(
                        Membership.user_id == user_id,
                        Membership.status == MembershipStatus.pending,
                        Membership.payment_status == PaymentStatus.pending,
                        Membership.payment_provider_id.is_not(None),
                    )
                    .order_by(Membership.created_at.desc())
                    .limit(1)
                    .with_for_update()
                )
            ).scalars().first()
            if membership is None:
                return None
            membership.payment_provider_id = None
            await self.db.flush()

        logger.info(f"Payment attempt reset for user {user_id}, membership {membership.id}")
        return membership

    # Internals

    async def _release_for_renewal(
        self, number: str, user_id: uuid.UUID, admin_id: Optional[str]
    ) -> Optional[str]:
        """
        Free ``number`` for the renewed row.

        The user's own active row hands the number over and becomes history.
        A number held by somebody else cannot be conserved.
        """
        holder = (
            await self.db.execute(
                select(Membership).where(Membership.membership_number == number).with_for_update()
            )
        ).scalars().first()
        if holder is None:
            return number
        if holder.user_id != user_id:
            logger.warning(
                f"Card number {number} of user {user_id} is held by user {holder.user_id}; not conserved"
            )
            return None

        retire_number(holder)
        holder.status = MembershipStatus.expired
        holder.updated_by = admin_id or SYSTEM_ACTOR
        await self.db.flush()
        return number
