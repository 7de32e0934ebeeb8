# identity.py
"""
Display names for users.

A user is either an individual, shown by username or full name, or an
organization, shown by company name. Nothing here touches the database.
"""

from enum import Enum
from typing import Any, Dict, Optional


class UserType(str, Enum):
    INDIVIDUAL = "individual"
    ORGANIZATION = "organization"


class InvalidRecord(ValueError):
    """A user record is missing the fields its user type requires."""


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def resolve_display_name(user: Any) -> str:
    """
    Returns the human readable name for a user.

    Individuals show their username when they have one, otherwise
    "first last". Organizations show their company name.

    Raises:
        InvalidRecord: if the user type is unknown or the fields
            needed for that type are missing.
    """
    try:
        user_type = UserType(getattr(user, "user_type", None))
    except ValueError:
        raise InvalidRecord(f"Unknown user type: {getattr(user, 'user_type', None)!r}")

    if user_type is UserType.INDIVIDUAL:
        username = _clean(getattr(user, "username", None))
        if username:
            return username
        first_name = _clean(getattr(user, "first_name", None))
        last_name = _clean(getattr(user, "last_name", None))
        if not first_name or not last_name:
            raise InvalidRecord("Individual users need a username or both first and last name")
        return f"{first_name} {last_name}"

    if user_type is UserType.ORGANIZATION:
        company_name = _clean(getattr(user, "company_name", None))
        if not company_name:
            raise InvalidRecord("Organization users need a company name")
        return company_name

    raise InvalidRecord(f"Unhandled user type: {user_type}")


def identity_fields(user: Any) -> Dict[str, Any]:
    """Public identity fields of a user, as shown next to comments and designs."""
    try:
        display_name = resolve_display_name(user)
    except InvalidRecord:
        display_name = None
    return {
        "id": user.id,
        "user_type": user.user_type,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "company_name": user.company_name,
        "display_name": display_name,
    }
