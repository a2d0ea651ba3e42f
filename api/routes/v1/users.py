"""
api/routes/v1/users.py -- User and application routes for the Jobly REST API.

Routes:
  POST   /users                              -- create user, may be admin (admin)
  GET    /users                              -- list users                (admin)
  GET    /users/{username}                   -- user detail with jobs     (admin or same user)
  PATCH  /users/{username}                   -- partial update            (admin or same user)
  DELETE /users/{username}                   -- delete user               (admin or same user)
  POST   /users/{username}/jobs/{job_id}     -- apply to a job            (admin or same user)

Auth policy:
  AdminOnly routes use require_admin; per-user routes use
  require_admin_or_self, which compares the token's username with the
  {username} path parameter. Only admins may change isAdmin through PATCH.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    AppliedResponse,
    DeletedResponse,
    UserCreate,
    UserCreatedResponse,
    UserDetail,
    UserDetailResponse,
    UserListItem,
    UserListResponse,
    UserOut,
    UserResponse,
    UserUpdate,
)
from auth.dependencies import require_admin, require_admin_or_self
from auth.models import IdentityClaim
from auth.tokens import create_token
from board.models import User
from board.store import BoardStore
from core.errors import UnauthorizedError

router = APIRouter()


@router.post(
    "/users",
    response_model=UserCreatedResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_user(request: Request, body: UserCreate) -> UserCreatedResponse:
    """Create a user (admin or not) and return it with a token for the new account."""
    store: BoardStore = request.app.state.store
    user = store.register(
        User(
            username=body.username,
            first_name=body.first_name,
            last_name=body.last_name,
            email=body.email,
            is_admin=body.is_admin,
        ),
        body.password,
    )
    return UserCreatedResponse(
        user=UserOut.from_domain(user),
        token=create_token(user.username, user.is_admin),
    )


@router.get("/users", response_model=UserListResponse, dependencies=[Depends(require_admin)])
def list_users(request: Request) -> UserListResponse:
    store: BoardStore = request.app.state.store
    return UserListResponse(users=[UserListItem.from_domain(u) for u in store.find_all_users()])


@router.get(
    "/users/{username}",
    response_model=UserDetailResponse,
    dependencies=[Depends(require_admin_or_self)],
)
def get_user(request: Request, username: str) -> UserDetailResponse:
    store: BoardStore = request.app.state.store
    return UserDetailResponse(user=UserDetail.from_domain(store.get_user(username)))


@router.patch("/users/{username}", response_model=UserResponse)
def update_user(
    request: Request,
    username: str,
    body: UserUpdate,
    identity: IdentityClaim = Depends(require_admin_or_self),
) -> UserResponse:
    """Update any of firstName, lastName, email, password (and isAdmin, for admins).

    An empty body is a 400. A non-admin sending isAdmin gets a 401 -- users
    cannot promote themselves.
    """
    store: BoardStore = request.app.state.store
    data = body.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    if "isAdmin" in data and identity.is_admin is not True:
        raise UnauthorizedError()
    user = store.update_user(username, data)
    return UserResponse(user=UserOut.from_domain(user))


@router.delete(
    "/users/{username}",
    response_model=DeletedResponse,
    dependencies=[Depends(require_admin_or_self)],
)
def delete_user(request: Request, username: str) -> DeletedResponse:
    store: BoardStore = request.app.state.store
    store.remove_user(username)
    return DeletedResponse(deleted=username)


@router.post(
    "/users/{username}/jobs/{job_id}",
    response_model=AppliedResponse,
    dependencies=[Depends(require_admin_or_self)],
)
def apply_to_job(request: Request, username: str, job_id: int) -> AppliedResponse:
    """Record an application. Unknown user or job is a 404; applying twice is a 400."""
    store: BoardStore = request.app.state.store
    return AppliedResponse(applied=store.apply_to_job(username, job_id))
