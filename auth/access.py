"""
auth/access.py -- Access policies and the decision function that applies them.

Two policies gate Jobly routes:

  AdminOnly             -- caller must hold an admin token.
  AdminOrSelf(username) -- caller must be an admin, or be the user the route
                           operates on.

evaluate() is pure: no I/O, no mutation, same answer for the same inputs.
enforce() is the raising form used by the FastAPI dependencies. A missing
identity (anonymous caller, or a token that failed verification) is simply
a DENY -- it is never reported as a separate error.

Layer rule: no imports from api/ or board/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from auth.models import IdentityClaim
from core.errors import UnauthorizedError

logger = logging.getLogger("jobly.auth")


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class AdminOnly:
    pass


@dataclass(frozen=True)
class AdminOrSelf:
    target_username: str


AccessPolicy = Union[AdminOnly, AdminOrSelf]


def evaluate(identity: IdentityClaim | None, policy: AccessPolicy) -> Decision:
    """Decide whether `identity` satisfies `policy`.

    Only a literal True is_admin counts as admin -- a missing claim or any
    other value does not.
    """
    if identity is None:
        return Decision.DENY

    is_admin = identity.is_admin is True

    if isinstance(policy, AdminOnly):
        return Decision.ALLOW if is_admin else Decision.DENY

    if isinstance(policy, AdminOrSelf):
        if is_admin or (identity.username is not None and identity.username == policy.target_username):
            return Decision.ALLOW
        return Decision.DENY

    raise TypeError(f"Unknown access policy: {policy!r}")


def enforce(identity: IdentityClaim | None, policy: AccessPolicy) -> IdentityClaim:
    """Return the identity if `policy` allows it, else raise UnauthorizedError."""
    if evaluate(identity, policy) is Decision.DENY:
        logger.info(
            "Access denied: user=%s policy=%s",
            identity.username if identity else "<anonymous>",
            type(policy).__name__,
        )
        raise UnauthorizedError()
    return identity
