"""
Authorization and sort-order enumerations reported by a contact store.
"""

from enum import Enum


class AuthorizationStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    RESTRICTED = "restricted"
    DENIED = "denied"
    AUTHORIZED = "authorized"


class SortOrder(str, Enum):
    NONE = "none"
    USER_DEFAULT = "user_default"
    GIVEN_NAME = "given_name"
    FAMILY_NAME = "family_name"
