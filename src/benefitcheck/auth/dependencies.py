"""
Authentication and authorization dependencies.

This module provides FastAPI dependencies that read the requester identity
supplied by the upstream authentication layer, and the ownership predicate
used before any sensitive read or destructive operation.
"""

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status

from benefitcheck.auth.constants import IdentityHeaders, Role
from benefitcheck.auth.schemas import User


async def get_current_user(request: Request) -> User:
    """
    Get the current user from the identity headers.

    Args:
        request: The HTTP request

    Returns:
        User: The authenticated requester

    Raises:
        HTTPException: If no identity was supplied or the role is unknown
    """
    user_id = request.headers.get(IdentityHeaders.USER_ID.value)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    role_value = request.headers.get(IdentityHeaders.USER_ROLE.value, Role.USER.value)
    try:
        role = Role(role_value.lower())
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {role_value}",
        ) from e

    return User(id=user_id, role=role)


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Dependency that only lets admins through."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return current_user


def owner_check_for(user: User, owner_id: str | None) -> Callable[[], bool]:
    """
    Build the ownership predicate for a record.

    Admins pass for any record that exists; everyone else only for records
    they own. A missing record (owner_id None) passes only for admins.

    Args:
        user: The requester
        owner_id: Owning user ID of the record, or None if it does not exist

    Returns:
        Callable[[], bool]: Predicate to evaluate before touching the record
    """

    def check() -> bool:
        if user.is_admin:
            return True
        return owner_id is not None and owner_id == user.id

    return check
