"""
API request and response models for Jobly REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in board/models.py, which
own the internal domain representation. Route handlers map between the two.

Field names are snake_case in Python and camelCase on the wire (numEmployees,
logoUrl, companyHandle, firstName, ...). The camelCase names are also the
logical field names the store's partial-update FieldMappings understand, so a
PATCH body dumped with by_alias=True can go straight to BoardStore.

Request models use extra="forbid": a body or query string with unknown keys is
rejected before it reaches a store. That is what keeps caller-chosen keys out
of the column-name position of sql_for_partial_update().
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError
from pydantic.alias_generators import to_camel

from board.models import Application, Company, Job, User
from core.errors import BadRequestError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
HANDLE_PATTERN = r"^[a-z0-9-]+$"

# Passwords are plain `str`: they are hashed and compared exactly as sent.
_Text = Annotated[str, StringConstraints(strip_whitespace=True)]
_Salary = Annotated[int, Field(ge=0, strict=True)]
_Equity = Annotated[float, Field(ge=0, le=1, strict=True)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class TokenRequest(_RequestModel):
    """Request body for POST /api/v1/auth/token."""

    username: _Text = Field(min_length=1, max_length=25)
    password: str = Field(min_length=1, max_length=72)


class RegisterRequest(_RequestModel):
    """Request body for POST /api/v1/auth/register. Self-registered users are never admins."""

    username: _Text = Field(min_length=1, max_length=25)
    password: str = Field(min_length=5, max_length=20)
    first_name: _Text = Field(min_length=1, max_length=30)
    last_name: _Text = Field(min_length=1, max_length=30)
    email: _Text = Field(min_length=6, max_length=60, pattern=EMAIL_PATTERN)


class TokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------


class CompanyCreate(_RequestModel):
    handle: _Text = Field(min_length=1, max_length=25, pattern=HANDLE_PATTERN)
    name: _Text = Field(min_length=1)
    description: _Text = ""
    num_employees: Optional[int] = Field(default=None, ge=0, strict=True)
    logo_url: Optional[_Text] = Field(default=None, max_length=255)


class CompanyUpdate(_RequestModel):
    """Request body for PATCH /companies/{handle}. The handle itself is immutable."""

    name: Optional[_Text] = Field(default=None, min_length=1)
    description: Optional[_Text] = None
    num_employees: Optional[int] = Field(default=None, ge=0, strict=True)
    logo_url: Optional[_Text] = Field(default=None, max_length=255)


class CompanyFilter(_RequestModel):
    """Query string for GET /companies."""

    name: Optional[_Text] = Field(default=None, min_length=1)
    min_employees: Optional[int] = Field(default=None, ge=0)
    max_employees: Optional[int] = Field(default=None, ge=0)


class JobSummary(_CamelModel):
    """A job as listed under its company -- no company back-reference."""

    id: int
    title: str
    salary: Optional[int] = None
    equity: Optional[float] = None

    @classmethod
    def from_domain(cls, job: Job) -> "JobSummary":
        return cls(id=job.id, title=job.title, salary=job.salary, equity=job.equity)


class CompanyOut(_CamelModel):
    handle: str
    name: str
    description: str
    num_employees: Optional[int] = None
    logo_url: Optional[str] = None

    @classmethod
    def from_domain(cls, company: Company) -> "CompanyOut":
        return cls(
            handle=company.handle,
            name=company.name,
            description=company.description,
            num_employees=company.num_employees,
            logo_url=company.logo_url,
        )


class CompanyDetail(CompanyOut):
    jobs: list[JobSummary] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, company: Company) -> "CompanyDetail":
        return cls(
            **CompanyOut.from_domain(company).model_dump(),
            jobs=[JobSummary.from_domain(j) for j in company.jobs],
        )


class CompanyResponse(BaseModel):
    company: CompanyOut


class CompanyDetailResponse(BaseModel):
    company: CompanyDetail


class CompanyListResponse(BaseModel):
    companies: list[CompanyOut]


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class JobCreate(_RequestModel):
    title: _Text = Field(min_length=1, max_length=50)
    salary: Optional[_Salary] = None
    equity: Optional[_Equity] = None
    company_handle: _Text = Field(min_length=1, max_length=25)


class JobUpdate(_RequestModel):
    """Request body for PATCH /jobs/{id}. id and companyHandle are immutable."""

    title: Optional[_Text] = Field(default=None, min_length=1, max_length=50)
    salary: Optional[_Salary] = None
    equity: Optional[_Equity] = None


class JobFilter(_RequestModel):
    """Query string for GET /jobs."""

    title: Optional[_Text] = Field(default=None, min_length=1)
    min_salary: Optional[int] = Field(default=None, ge=0)
    has_equity: Optional[bool] = None


class JobOut(_CamelModel):
    id: int
    title: str
    salary: Optional[int] = None
    equity: Optional[float] = None
    company_handle: str

    @classmethod
    def from_domain(cls, job: Job) -> "JobOut":
        return cls(
            id=job.id,
            title=job.title,
            salary=job.salary,
            equity=job.equity,
            company_handle=job.company_handle,
        )


class JobDetail(_CamelModel):
    id: int
    title: str
    salary: Optional[int] = None
    equity: Optional[float] = None
    company: CompanyOut

    @classmethod
    def from_domain(cls, job: Job) -> "JobDetail":
        return cls(
            id=job.id,
            title=job.title,
            salary=job.salary,
            equity=job.equity,
            company=CompanyOut.from_domain(job.company),
        )


class JobResponse(BaseModel):
    job: JobOut


class JobDetailResponse(BaseModel):
    job: JobDetail


class JobListResponse(BaseModel):
    jobs: list[JobOut]


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(RegisterRequest):
    """Request body for POST /users (admin only) -- may create admins."""

    is_admin: bool = False


class UserUpdate(_RequestModel):
    """Request body for PATCH /users/{username}.

    is_admin is accepted here but the route only lets admins set it.
    """

    first_name: Optional[_Text] = Field(default=None, min_length=1, max_length=30)
    last_name: Optional[_Text] = Field(default=None, min_length=1, max_length=30)
    password: Optional[str] = Field(default=None, min_length=5, max_length=20)
    email: Optional[_Text] = Field(default=None, min_length=6, max_length=60, pattern=EMAIL_PATTERN)
    is_admin: Optional[bool] = None


class UserOut(_CamelModel):
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool

    @classmethod
    def from_domain(cls, user: User) -> "UserOut":
        return cls(
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            is_admin=user.is_admin,
        )


class UserListItem(UserOut):
    """A user in GET /users, with the ids of jobs applied to."""

    jobs: list[int] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, user: User) -> "UserListItem":
        return cls(**UserOut.from_domain(user).model_dump(), jobs=list(user.jobs))


class ApplicationOut(_CamelModel):
    id: int
    title: Optional[str] = None
    company_handle: Optional[str] = None
    company_name: Optional[str] = None

    @classmethod
    def from_domain(cls, application: Application) -> "ApplicationOut":
        return cls(
            id=application.job_id,
            title=application.title,
            company_handle=application.company_handle,
            company_name=application.company_name,
        )


class UserDetail(UserOut):
    jobs: list[ApplicationOut] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, user: User) -> "UserDetail":
        return cls(
            **UserOut.from_domain(user).model_dump(),
            jobs=[ApplicationOut.from_domain(a) for a in user.jobs],
        )


class UserResponse(BaseModel):
    user: UserOut


class UserCreatedResponse(BaseModel):
    user: UserOut
    token: str


class UserDetailResponse(BaseModel):
    user: UserDetail


class UserListResponse(BaseModel):
    users: list[UserListItem]


class AppliedResponse(BaseModel):
    applied: int


class DeletedResponse(BaseModel):
    deleted: str


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Query string parsing
# ---------------------------------------------------------------------------


def parse_query(model: type[_RequestModel], params: Mapping[str, str]) -> _RequestModel:
    """Validate a query string against a filter model.

    FastAPI's Query() parameters silently ignore unknown keys; searches must
    reject them, so the raw params are validated against an extra="forbid"
    model instead. Validation failures surface as BadRequestError (400).
    """
    try:
        return model.model_validate(dict(params))
    except ValidationError as exc:
        raise BadRequestError(f"Invalid search: {exc.error_count()} error(s) in query string") from exc
