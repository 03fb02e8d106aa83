# membership_app/models/__init__.py

from .user import User, Role
from .user_profile import UserProfile
from .membership import Membership
from .card_number_range import CardNumberRange
from .setting import Setting

__all__ = [
    "User",
    "Role",
    "UserProfile",
    "Membership",
    "CardNumberRange",
    "Setting",
]
