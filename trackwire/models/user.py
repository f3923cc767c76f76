"""User identity carried by every tracking message.

The tracking API requires a user ID, an anonymous ID, or both.  Each legal
combination is its own model so a value with neither identifier cannot exist.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "AnonymousId",
    "User",
    "UserAndAnonymousId",
    "UserId",
    "make_user",
    "user_from_wire",
    "USER_ID_KEY",
    "ANONYMOUS_ID_KEY",
]

USER_ID_KEY = "userId"
ANONYMOUS_ID_KEY = "anonymousId"


class UserId(BaseModel):
    """The user is identified only by a user ID."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)

    def to_wire(self) -> Dict[str, Any]:
        return {USER_ID_KEY: self.user_id}

    def __str__(self) -> str:
        return self.user_id


class AnonymousId(BaseModel):
    """The user is identified only by an anonymous ID."""

    model_config = ConfigDict(frozen=True)

    anonymous_id: str = Field(..., min_length=1)

    def to_wire(self) -> Dict[str, Any]:
        return {ANONYMOUS_ID_KEY: self.anonymous_id}

    def __str__(self) -> str:
        return self.anonymous_id


class UserAndAnonymousId(BaseModel):
    """The user is identified by both a user ID and an anonymous ID."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    anonymous_id: str = Field(..., min_length=1)

    def to_wire(self) -> Dict[str, Any]:
        return {USER_ID_KEY: self.user_id, ANONYMOUS_ID_KEY: self.anonymous_id}

    def __str__(self) -> str:
        # The user ID wins when both are known
        return self.user_id


User = Union[UserId, AnonymousId, UserAndAnonymousId]


def make_user(user_id: Optional[str] = None, anonymous_id: Optional[str] = None) -> User:
    """Build the identity shape matching the identifiers given.

    Raises ``ValueError`` when neither identifier is supplied; empty strings
    are rejected by the models themselves.
    """
    if user_id is not None and anonymous_id is not None:
        return UserAndAnonymousId(user_id=user_id, anonymous_id=anonymous_id)
    if user_id is not None:
        return UserId(user_id=user_id)
    if anonymous_id is not None:
        return AnonymousId(anonymous_id=anonymous_id)
    raise ValueError("either user_id or anonymous_id is required")


def user_from_wire(data: Mapping[str, Any]) -> User:
    """Read the identity out of a wire object (``userId`` / ``anonymousId``)."""
    return make_user(
        user_id=data.get(USER_ID_KEY),
        anonymous_id=data.get(ANONYMOUS_ID_KEY),
    )
