from enum import Enum


class Role(str, Enum):
    """User roles in the system."""

    ADMIN = "admin"
    USER = "user"


class IdentityHeaders(str, Enum):
    """Headers set by the upstream authentication layer."""

    USER_ID = "X-User-Id"
    USER_ROLE = "X-User-Role"
