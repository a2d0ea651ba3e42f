"""
board/models.py -- Domain dataclasses for the Jobly job board.

These are pure data containers with zero logic. All queries, validation
against existing rows and partial updates live in board/store.py.

Attribute names are snake_case here; the API layer (api/models.py) exposes
them under their camelCase names (numEmployees, logoUrl, companyHandle, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Job:
    """A job posting.

    equity is a fraction between 0 and 1; None means not disclosed.
    id is None before the record is written to the database.
    company is only populated by BoardStore.get_job().
    """

    title: str
    company_handle: str
    id: Optional[int] = None
    salary: Optional[int] = None
    equity: Optional[float] = None
    company: Optional["Company"] = None


@dataclass
class Company:
    """A company that posts jobs.

    jobs is only populated by BoardStore.get_company().
    """

    handle: str
    name: str
    description: str = ""
    num_employees: Optional[int] = None
    logo_url: Optional[str] = None
    jobs: list[Job] = field(default_factory=list)


@dataclass
class Application:
    """A user's application to a job, with the job context shown on profiles."""

    job_id: int
    title: Optional[str] = None
    company_handle: Optional[str] = None
    company_name: Optional[str] = None


@dataclass
class User:
    """A registered user.

    jobs holds applied job ids in list views (BoardStore.find_all_users) and
    Application records in the detail view (BoardStore.get_user).
    """

    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool = False
    jobs: list = field(default_factory=list)
