"""Card number range registry.

Owns the administrator-declared ranges card numbers are drawn from and answers
availability questions against the numbers already issued to memberships.
The available pool is never stored: it is recomputed from the ranges and the
issued numbers on every read, inside the caller's transaction.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set

from sqlalchemy import or_, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from membership_app.core.config import settings
from membership_app.core.exceptions import (
    InvalidRange,
    NumberAlreadyAssigned,
    RangeInUse,
    RangeNotFound,
    RangeOverlap,
    RangeTooLarge,
)
from membership_app.core.logging_config import get_logger
from membership_app.db.deps import atomic
from membership_app.models.card_number_range import CardNumberRange
from membership_app.models.membership import Membership
from membership_app.models.user import User
from membership_app.models.user_profile import UserProfile
from membership_app.utils.card_numbers import (
    NumberSpan,
    generate_numbers_from_range,
    group_into_contiguous_ranges,
)


logger = get_logger("card_ranges")

# Arbitrary application-wide key for pg_advisory_xact_lock
REGISTRY_LOCK_KEY = 0x7E55E7A


@dataclass
class CardNumberRangeStats:
    range: CardNumberRange
    total_numbers: int
    used_numbers: int
    available_numbers: int
    available_sub_ranges: List[NumberSpan] = field(default_factory=list)


async def lock_registry(db: AsyncSession) -> None:
    """
    Serialize writers of ranges and card numbers for the current transaction.

    On PostgreSQL this takes a transaction-scoped advisory lock released on
    commit or rollback. SQLite already allows a single writer at a time.
    """
    if db.get_bind().dialect.name == "postgresql":
        await db.execute(
            text("SELECT pg_advisory_xact_lock(:key)"), {"key": REGISTRY_LOCK_KEY}
        )


class CardRangeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # Reads

    async def list_ranges(self) -> List[CardNumberRange]:
        stmt = select(CardNumberRange).order_by(CardNumberRange.start_number.asc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def issued_numbers(
        self,
        candidates: Optional[Iterable[str]] = None,
        include_retired: bool = False,
    ) -> Set[str]:
        """
        Numbers currently held by a membership.

        With ``include_retired`` the numbers parked in
        ``previous_membership_number`` by the sweep or a cancellation count
        too, which answers "was this number ever handed out". When
        ``candidates`` is given only those numbers are looked up.
        """
        if candidates is not None:
            candidates = list(candidates)
            if not candidates:
                return set()

        current = select(Membership.membership_number).where(
            Membership.membership_number.is_not(None)
        )
        if candidates is not None:
            current = current.where(Membership.membership_number.in_(candidates))
        issued = set((await self.db.execute(current)).scalars().all())

        if include_retired:
            retired = select(Membership.previous_membership_number).where(
                Membership.previous_membership_number.is_not(None)
            )
            if candidates is not None:
                retired = retired.where(Membership.previous_membership_number.in_(candidates))
            issued.update((await self.db.execute(retired)).scalars().all())
        return issued

    async def list_with_stats(self) -> List[CardNumberRangeStats]:
        """Every range with its usage counters and the free numbers grouped into runs."""
        ranges = await self.list_ranges()
        issued = await self.issued_numbers()

        stats: List[CardNumberRangeStats] = []
        for card_range in ranges:
            free = [
                number
                for number in range(card_range.start_number, card_range.end_number + 1)
                if str(number) not in issued
            ]
            total = card_range.total_numbers
            stats.append(
                CardNumberRangeStats(
                    range=card_range,
                    total_numbers=total,
                    used_numbers=total - len(free),
                    available_numbers=len(free),
                    available_sub_ranges=group_into_contiguous_ranges(free),
                )
            )
        return stats

    async def available_numbers(self) -> List[str]:
        """
        Every free number of every range in allocation order.

        Ranges are walked by ascending ``start_number`` and numbers ascending
        within each range, so lower card numbers are always handed out first.
        """
        ranges = await self.list_ranges()
        if not ranges:
            return []

        issued = await self.issued_numbers()
        available: List[str] = []
        for card_range in ranges:
            available.extend(
                number
                for number in generate_numbers_from_range(
                    card_range.start_number, card_range.end_number
                )
                if number not in issued
            )
        return available

    async def available_count(self) -> int:
        return len(await self.available_numbers())

    async def is_number_in_any_range(self, number: int) -> bool:
        stmt = (
            select(CardNumberRange.id)
            .where(
                CardNumberRange.start_number <= number,
                CardNumberRange.end_number >= number,
            )
            .limit(1)
        )
        return (await self.db.execute(stmt)).first() is not None

    async def validate_range_fully_configured(self, start: int, end: int) -> List[int]:
        """Numbers of ``[start, end]`` that fall outside every configured range."""
        if start > end:
            return []
        stmt = select(CardNumberRange).where(
            CardNumberRange.start_number <= end,
            CardNumberRange.end_number >= start,
        )
        covering = (await self.db.execute(stmt)).scalars().all()
        return [
            number
            for number in range(start, end + 1)
            if not any(r.contains(number) for r in covering)
        ]

    async def list_assigned_numbers(self) -> List[dict]:
        """Memberships currently holding a number, with the holder's identity."""
        stmt = (
            select(Membership, User, UserProfile)
            .join(User, User.id == Membership.user_id)
            .outerjoin(UserProfile, UserProfile.user_id == User.id)
            .where(Membership.membership_number.is_not(None))
        )
        rows = (await self.db.execute(stmt)).all()
        result = []
        for membership, user, profile in rows:
            result.append(
                {
                    "membership_id": membership.id,
                    "membership_number": membership.membership_number,
                    "user_id": user.id,
                    "email": user.email,
                    "first_name": (profile.first_name if profile else None) or "-",
                    "last_name": (profile.last_name if profile else None) or "-",
                    "end_date": membership.end_date,
                }
            )
        # Numeric numbers sort numerically, prefixed ones after them lexically
        result.sort(key=lambda row: _number_sort_key(row["membership_number"]))
        return result

    # Writes

    async def add_range(
        self, start_number: int, end_number: int, admin_id: Optional[str] = None
    ) -> CardNumberRange:
        if start_number > end_number:
            raise InvalidRange(start_number, end_number)

        size = end_number - start_number + 1
        if size > settings.MAX_RANGE_SIZE:
            raise RangeTooLarge(size, settings.MAX_RANGE_SIZE)

        async with atomic(self.db):
            await lock_registry(self.db)

            candidates = generate_numbers_from_range(start_number, end_number)
            conflicting = sorted(
                await self.issued_numbers(candidates), key=_number_sort_key
            )
            if conflicting:
                raise NumberAlreadyAssigned(conflicting)

            overlapping = await self._overlapping_ranges(start_number, end_number)
            if overlapping:
                raise RangeOverlap([r.label() for r in overlapping])

            card_range = CardNumberRange(
                start_number=start_number,
                end_number=end_number,
                created_by=admin_id,
            )
            self.db.add(card_range)
            await self.db.flush()

        logger.info(
            f"Card number range {card_range.label()} added ({size} numbers) by {admin_id or 'system'}"
        )
        return card_range

    async def remove_range(self, range_id: uuid.UUID) -> None:
        async with atomic(self.db):
            await lock_registry(self.db)

            card_range = await self.db.get(CardNumberRange, range_id)
            if card_range is None:
                raise RangeNotFound(range_id)

            # Any number ever handed out keeps its range alive
            used = await self.issued_numbers(
                generate_numbers_from_range(card_range.start_number, card_range.end_number),
                include_retired=True,
            )
            if used:
                raise RangeInUse(len(used))

            label = card_range.label()
            await self.db.delete(card_range)

        logger.info(f"Card number range {label} removed")

    # Helpers

    async def _overlapping_ranges(self, start: int, end: int) -> Sequence[CardNumberRange]:
        stmt = (
            select(CardNumberRange)
            .where(
                or_(
                    # New range starts within an existing range
                    (CardNumberRange.start_number <= start) & (CardNumberRange.end_number >= start),
                    # New range ends within an existing range
                    (CardNumberRange.start_number <= end) & (CardNumberRange.end_number >= end),
                    # New range completely contains an existing range
                    (CardNumberRange.start_number >= start) & (CardNumberRange.end_number <= end),
                )
            )
            .order_by(CardNumberRange.start_number.asc())
        )
        return (await self.db.execute(stmt)).scalars().all()


def _number_sort_key(number: str):
    if number.isdigit():
        return (0, int(number), number)
    return (1, 0, number)
