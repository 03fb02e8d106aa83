"""Domain errors raised by the range registry, the allocator and the lifecycle services.

Every error carries a stable ``error_code`` and the HTTP status it maps to, so
routes can let them propagate and the application-level handler renders them
through the standard error envelope.
"""

from __future__ import annotations

from typing import Iterable, Sequence


def summarize_list(items: Sequence[str], limit: int) -> str:
    """Join the first ``limit`` items and elide the rest with a count.

    >>> summarize_list(["1", "2", "3"], 2)
    '1, 2 and 1 more'
    """
    shown = ", ".join(str(item) for item in items[:limit])
    hidden = len(items) - limit
    if hidden > 0:
        return f"{shown} and {hidden} more"
    return shown


class MembershipError(Exception):
    error_code = "MEMBERSHIP_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Iterable[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])


# Validation errors: rejected before any write


class InvalidRange(MembershipError):
    error_code = "INVALID_RANGE"

    def __init__(self, start: int, end: int):
        super().__init__(
            f"Start number {start} must be less than or equal to end number {end}"
        )


class RangeTooLarge(MembershipError):
    error_code = "RANGE_TOO_LARGE"

    def __init__(self, size: int, max_size: int):
        super().__init__(f"A range cannot contain more than {max_size} numbers (got {size})")
        self.size = size
        self.max_size = max_size


class InvalidMembershipFee(MembershipError):
    error_code = "INVALID_MEMBERSHIP_FEE"

    def __init__(self, fee_cents: int):
        super().__init__("Membership fee must be greater than 0")
        self.fee_cents = fee_cents


# Not-found errors


class RangeNotFound(MembershipError):
    error_code = "RANGE_NOT_FOUND"
    status_code = 404

    def __init__(self, range_id):
        super().__init__("Card number range not found")
        self.range_id = range_id


class MembershipNotFound(MembershipError):
    error_code = "MEMBERSHIP_NOT_FOUND"
    status_code = 404

    def __init__(self, membership_id):
        super().__init__("Membership not found")
        self.membership_id = membership_id


class UserNotFound(MembershipError):
    error_code = "USER_NOT_FOUND"
    status_code = 404

    def __init__(self, user_id):
        super().__init__("User not found")
        self.user_id = user_id


# Conflict errors: carry enough detail for the caller to resolve them


class NumberAlreadyAssigned(MembershipError):
    error_code = "NUMBER_ALREADY_ASSIGNED"
    status_code = 409
    DISPLAY_LIMIT = 10

    def __init__(self, numbers: Sequence[str]):
        numbers = list(numbers)
        if numbers:
            message = (
                "The following numbers are already assigned: "
                f"{summarize_list(numbers, self.DISPLAY_LIMIT)}"
            )
        else:
            message = "Membership number is already assigned"
        super().__init__(message, details=numbers[: self.DISPLAY_LIMIT])
        self.numbers = numbers


class RangeOverlap(MembershipError):
    error_code = "RANGE_OVERLAP"
    status_code = 409

    def __init__(self, overlapping: Sequence[str]):
        overlapping = list(overlapping)
        super().__init__(
            f"The range overlaps existing ranges: {', '.join(overlapping)}",
            details=overlapping,
        )
        self.overlapping = overlapping


class RangeInUse(MembershipError):
    error_code = "RANGE_IN_USE"
    status_code = 409

    def __init__(self, used_count: int):
        super().__init__(
            f"Cannot delete: {used_count} numbers of this range have already been assigned"
        )
        self.used_count = used_count


class UserNotAssignable(MembershipError):
    error_code = "USER_NOT_ASSIGNABLE"
    status_code = 409

    def __init__(self, user_id):
        super().__init__(
            "User has no paid membership awaiting a card number"
        )
        self.user_id = user_id


class DuplicateMembership(MembershipError):
    error_code = "DUPLICATE_MEMBERSHIP"
    status_code = 409

    def __init__(self, user_id):
        super().__init__("User already has a pending or active membership")
        self.user_id = user_id


class AlreadyCanceled(MembershipError):
    error_code = "ALREADY_CANCELED"
    status_code = 409

    def __init__(self, membership_id):
        super().__init__("Membership is already canceled")
        self.membership_id = membership_id


# Resource-exhaustion errors: the administrator has to configure ranges


class NumberNotConfigured(MembershipError):
    error_code = "NUMBER_NOT_CONFIGURED"
    status_code = 422

    def __init__(self, number: str):
        super().__init__(
            f"Number {number} is not inside any configured card number range",
            details=[number],
        )
        self.number = number


class RangeNotConfigured(MembershipError):
    error_code = "RANGE_NOT_CONFIGURED"
    status_code = 422
    DISPLAY_LIMIT = 5

    def __init__(self, numbers: Sequence[str]):
        numbers = list(numbers)
        super().__init__(
            "Some numbers are outside every configured card number range: "
            f"{summarize_list(numbers, self.DISPLAY_LIMIT)}. Configure the ranges first.",
            details=numbers[: self.DISPLAY_LIMIT],
        )
        self.numbers = numbers


class NoNumbersAvailable(MembershipError):
    error_code = "NO_NUMBERS_AVAILABLE"
    status_code = 409

    def __init__(self):
        super().__init__(
            "No card numbers available. Configure the card number ranges first."
        )
