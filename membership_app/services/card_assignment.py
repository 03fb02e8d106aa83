"""Card number allocation.

This is the only module that writes ``Membership.membership_number``. Each
entry point runs as one transaction: the eligibility read, the availability
read and every assignment write commit together or not at all, so two
concurrent calls can never hand out the same number. The unique index on
``membership_number`` is the last guard; a violation surfaces as
``NumberAlreadyAssigned``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from membership_app.core.config import settings
from membership_app.core.exceptions import (
    InvalidRange,
    NoNumbersAvailable,
    NumberAlreadyAssigned,
    NumberNotConfigured,
    RangeNotConfigured,
    RangeTooLarge,
    UserNotAssignable,
)
from membership_app.core.logging_config import get_logger
from membership_app.db.deps import atomic
from membership_app.models.membership import Membership
from membership_app.models.user import User
from membership_app.models.user_profile import UserProfile
from membership_app.services.card_ranges import CardRangeService, lock_registry
from membership_app.utils.card_numbers import generate_sequential_numbers, parse_card_number
from membership_app.utils.datetime_utils import get_current_utc_datetime, membership_period
from membership_app.utils.enums import MembershipStatus, PaymentStatus


logger = get_logger("card_assignment")


@dataclass
class AssignedCard:
    user_id: uuid.UUID
    email: str
    membership_number: str


@dataclass
class UserWithoutCard:
    user_id: uuid.UUID
    email: str


@dataclass
class SingleAssignResult:
    user_id: uuid.UUID
    email: str
    membership_id: uuid.UUID
    membership_number: str
    start_date: datetime
    end_date: datetime


@dataclass
class BatchAssignResult:
    assigned: List[AssignedCard] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # already issued
    remaining: List[str] = field(default_factory=list)  # left over after users ran out
    users_without_card: List[UserWithoutCard] = field(default_factory=list)


@dataclass
class AutoAssignResult:
    assigned: List[AssignedCard] = field(default_factory=list)
    users_without_card: List[UserWithoutCard] = field(default_factory=list)
    available_count: int = 0
    requested_count: int = 0


def assignable_filter():
    """Paid, no number yet, and neither expired nor canceled."""
    return (
        Membership.payment_status == PaymentStatus.succeeded,
        Membership.membership_number.is_(None),
        Membership.status.not_in([MembershipStatus.expired, MembershipStatus.canceled]),
    )


class CardAssignmentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.ranges = CardRangeService(db)

    async def assign_single(self, user_id: uuid.UUID, membership_number: str) -> SingleAssignResult:
        """Give one explicit number to one user awaiting a card."""
        membership_number = membership_number.strip()

        async with atomic(self.db):
            await lock_registry(self.db)

            if await self._is_held(membership_number):
                raise NumberAlreadyAssigned([membership_number])

            numeric = parse_card_number(membership_number)
            if numeric is None or not await self.ranges.is_number_in_any_range(numeric):
                raise NumberNotConfigured(membership_number)

            eligible = await self._eligible_memberships([user_id])
            if not eligible:
                raise UserNotAssignable(user_id)

            membership, user = eligible[0]
            now = get_current_utc_datetime()
            await self._assign(membership, membership_number, now)

        logger.info(f"Assigned card number {membership_number} to user {user.id}")
        return SingleAssignResult(
            user_id=user.id,
            email=user.email,
            membership_id=membership.id,
            membership_number=membership_number,
            start_date=membership.start_date,
            end_date=membership.end_date,
        )

    async def assign_batch(
        self,
        prefix: str,
        start_number: str,
        end_number: str,
        user_ids: Sequence[uuid.UUID],
    ) -> BatchAssignResult:
        """
        Hand the literal sequence ``prefix + start..end`` to eligible users, FIFO.

        Leftover users or numbers are reported, not rejected. The whole batch
        is refused when the interval is larger than a range may be, or when
        part of it lies outside every range.
        """
        start_value, end_value = int(start_number), int(end_number)
        if start_value > end_value:
            raise InvalidRange(start_value, end_value)
        size = end_value - start_value + 1
        if size > settings.MAX_RANGE_SIZE:
            raise RangeTooLarge(size, settings.MAX_RANGE_SIZE)

        candidates = generate_sequential_numbers(prefix, start_number, end_number)

        async with atomic(self.db):
            await lock_registry(self.db)

            unconfigured = await self.ranges.validate_range_fully_configured(start_value, end_value)
            if unconfigured:
                raise RangeNotConfigured([candidates[n - start_value] for n in unconfigured])

            issued = await self.ranges.issued_numbers(candidates)
            skipped = [number for number in candidates if number in issued]
            available = [number for number in candidates if number not in issued]

            eligible = await self._eligible_memberships(user_ids)
            assigned, without_card = await self._assign_in_order(eligible, available)

        result = BatchAssignResult(
            assigned=assigned,
            skipped=skipped,
            remaining=available[len(assigned):],
            users_without_card=without_card,
        )
        logger.info(
            f"Batch assignment {candidates[0]}..{candidates[-1]}: "
            f"{len(result.assigned)} assigned, {len(result.skipped)} skipped, "
            f"{len(result.remaining)} remaining, {len(result.users_without_card)} users without card"
        )
        return result

    async def assign_auto(self, user_ids: Sequence[uuid.UUID]) -> AutoAssignResult:
        """Draw numbers from the configured pool, lowest first, for eligible users FIFO."""
        async with atomic(self.db):
            await lock_registry(self.db)

            available = await self.ranges.available_numbers()
            if not available:
                raise NoNumbersAvailable()

            eligible = await self._eligible_memberships(user_ids)
            assigned, without_card = await self._assign_in_order(eligible, available)

        logger.info(
            f"Automatic assignment: {len(assigned)} assigned, "
            f"{len(without_card)} users without card, {len(available)} numbers were available"
        )
        return AutoAssignResult(
            assigned=assigned,
            users_without_card=without_card,
            available_count=len(available),
            requested_count=len(user_ids),
        )

    async def list_users_awaiting_card(self) -> List[dict]:
        """Users with a paid membership and no number yet, first payer first."""
        stmt = (
            select(Membership, User, UserProfile)
            .join(User, User.id == Membership.user_id)
            .outerjoin(UserProfile, UserProfile.user_id == User.id)
            .where(*assignable_filter())
            .order_by(Membership.created_at.asc(), Membership.id.asc())
        )
        rows = (await self.db.execute(stmt)).all()
        seen: Dict[uuid.UUID, dict] = {}
        for membership, user, profile in rows:
            if user.id in seen:
                continue
            seen[user.id] = {
                "user_id": user.id,
                "email": user.email,
                "first_name": (profile.first_name if profile else None) or "-",
                "last_name": (profile.last_name if profile else None) or "-",
                "membership_id": membership.id,
                "payment_date": membership.created_at,
            }
        return list(seen.values())

    # Internals

    async def _eligible_memberships(
        self, user_ids: Sequence[uuid.UUID]
    ) -> List[Tuple[Membership, User]]:
        """One assignable membership per requested user, ordered by membership creation."""
        if not user_ids:
            return []
        stmt = (
            select(Membership, User)
            .join(User, User.id == Membership.user_id)
            .where(Membership.user_id.in_(list(user_ids)), *assignable_filter())
            .order_by(Membership.created_at.asc(), Membership.id.asc())
            .with_for_update(of=Membership)
        )
        rows = (await self.db.execute(stmt)).all()

        eligible: List[Tuple[Membership, User]] = []
        seen: set = set()
        for membership, user in rows:
            if user.id in seen:
                continue
            seen.add(user.id)
            eligible.append((membership, user))
        return eligible

    async def _assign_in_order(
        self, eligible: List[Tuple[Membership, User]], numbers: List[str]
    ) -> Tuple[List[AssignedCard], List[UserWithoutCard]]:
        now = get_current_utc_datetime()
        assigned: List[AssignedCard] = []
        without_card: List[UserWithoutCard] = []

        for index, (membership, user) in enumerate(eligible):
            if index >= len(numbers):
                without_card.append(UserWithoutCard(user_id=user.id, email=user.email))
                continue
            number = numbers[index]
            await self._assign(membership, number, now)
            assigned.append(AssignedCard(user_id=user.id, email=user.email, membership_number=number))

        return assigned, without_card

    async def _assign(self, membership: Membership, number: str, now: datetime) -> None:
        start, end = membership_period(now, settings.MEMBERSHIP_DURATION_DAYS)
        membership.membership_number = number
        membership.status = MembershipStatus.active
        membership.start_date = start
        membership.end_date = end
        membership.card_assigned_at = now
        try:
            await self.db.flush()
        except IntegrityError as exc:
            logger.error(
                f"Unique constraint rejected card number {number} for membership {membership.id}"
            )
            raise NumberAlreadyAssigned([number]) from exc

    async def _is_held(self, number: str) -> bool:
        held = await self.db.execute(
            select(Membership.id).where(Membership.membership_number == number).limit(1)
        )
        return held.first() is not None
