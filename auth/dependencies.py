"""
auth/dependencies.py -- Bearer token extraction and FastAPI Depends() helpers.

BearerAuthenticator turns an Authorization header into an IdentityClaim. It
is constructed once at startup with the signing secret and stored on
app.state.authenticator; the HTTP middleware in api/main.py runs it on every
request and stores the result on request.state.user.

Authentication never fails a request by itself: no header, a malformed
header or a token with a bad signature all yield an anonymous caller. The
Depends() helpers below apply an AccessPolicy on the routes that need one:

  current_identity()        -- soft variant, returns None for anonymous callers
  require_admin()           -- AdminOnly
  require_admin_or_self()   -- AdminOrSelf(path parameter "username")

Layer rule: no imports from api/ or board/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import re

from fastapi import Request

from auth.access import AdminOnly, AdminOrSelf, enforce
from auth.models import IdentityClaim
from auth.tokens import decode_token

_BEARER_RE = re.compile(r"^bearer\s+", re.IGNORECASE)


class BearerAuthenticator:
    """Verify "Bearer <token>" headers against a shared HS256 secret."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key

    def extract(self, authorization: str | None) -> IdentityClaim | None:
        """Return the verified identity, or None when there is none.

        The scheme prefix is matched case-insensitively and surrounding
        whitespace on the token is ignored.
        """
        if not authorization:
            return None
        token = _BEARER_RE.sub("", authorization.strip(), count=1).strip()
        if not token:
            return None
        payload = decode_token(token, self._secret_key)
        if payload is None:
            return None
        return IdentityClaim.from_payload(payload)


def current_identity(request: Request) -> IdentityClaim | None:
    """Return the identity populated by the authentication middleware, if any."""
    return getattr(request.state, "user", None)


def require_admin(request: Request) -> IdentityClaim:
    """Require an admin token. Raises UnauthorizedError (401) otherwise.

    Use as a FastAPI dependency:
        @router.post("/companies", dependencies=[Depends(require_admin)])
    """
    return enforce(current_identity(request), AdminOnly())


def require_admin_or_self(request: Request, username: str) -> IdentityClaim:
    """Require an admin token or a token for the user named in the path.

    FastAPI resolves `username` from the route's {username} path parameter.
    """
    return enforce(current_identity(request), AdminOrSelf(username))
