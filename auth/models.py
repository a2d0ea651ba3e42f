"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in board/models.py -- dataclasses own domain shape; helpers do the work.

Layer rule: no imports from api/ or board/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class IdentityClaim:
    """The verified payload of a bearer token.

    Built once per request by BearerAuthenticator.extract(). is_admin is None
    when the token carried no isAdmin claim; access checks treat anything but
    True as "not an admin". iat is the issued-at timestamp, kept for logging.
    """

    username: str | None
    is_admin: bool | None = None
    iat: int | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "IdentityClaim":
        username = payload.get("username")
        is_admin = payload.get("isAdmin")
        iat = payload.get("iat")
        return cls(
            username=username if isinstance(username, str) else None,
            is_admin=is_admin if isinstance(is_admin, bool) else None,
            iat=iat if isinstance(iat, int) else None,
        )
