import enum


class MembershipStatus(str, enum.Enum):
    pending = "pending"
    active = "active"
    expired = "expired"
    canceled = "canceled"


class PaymentStatus(str, enum.Enum):
    pending = "pending"
    succeeded = "succeeded"
    failed = "failed"
    canceled = "canceled"


class SystemState(str, enum.Enum):
    no_membership = "S0_NO_MEMBERSHIP"           # registered, nothing purchased (interrotto)
    profile_complete = "S1_PROFILE_COMPLETE"     # ready to pay
    processing_payment = "S2_PROCESSING_PAYMENT" # redirected to the payment provider
    payment_failed = "S3_PAYMENT_FAILED"
    awaiting_number = "S4_AWAITING_NUMBER"       # paid, no card number yet
    active = "S5_ACTIVE"
    expired = "S6_EXPIRED"
    canceled = "S7_CANCELED"                     # canceled by an administrator
    # Unrecognized fact combination; rendered as "contact support"
    unknown = "UNKNOWN"


class AssignmentMode(str, enum.Enum):
    auto = "auto"
    range = "range"
    single = "single"
