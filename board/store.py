"""
board/store.py -- SQLAlchemy-backed persistence layer for the Jobly job board.

Uses SQLAlchemy Core (not ORM) so the dataclasses in board/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change (DATABASE_URL), not a rewrite.

Pattern: Repository + Data Mapper. BoardStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers. Route
handlers never touch SQL directly.

Dynamic SQL:
  Partial updates and searches are built by core/sql.py, which emits
  positional placeholders ($1, $2, ...). _bind() rewrites them to named
  SQLAlchemy binds (:p1, :p2, ...) so the same fragments run on every
  dialect. All values travel as bound parameters; only column names from
  the FieldMappings (or identifier-checked keys) reach the SQL text.

  SQLite has no ILIKE. Its LIKE is already case-insensitive for ASCII, so
  _bind() downgrades ILIKE to LIKE on that dialect.

Usage:
    store = BoardStore()                                   # DATABASE_URL from Settings
    store = BoardStore("postgresql://user:pw@host/jobly")
    store.create_company(Company(handle="acme", name="Acme"))
    store.filter_jobs({"title": "engineer", "hasEquity": True})
    store.close()
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union
from urllib.parse import parse_qsl

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    create_engine,
    event,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.sql.elements import TextClause

from auth.tokens import dummy_hash, hash_password, verify_password
from board.models import Application, Company, Job, User
from core.config import get_settings
from core.errors import BadRequestError, NotFoundError, UnauthorizedError
from core.sql import (
    COMPANY_FIELDS,
    JOB_FIELDS,
    USER_FIELDS,
    sql_for_filter_company,
    sql_for_filter_job,
    sql_for_partial_update,
)

logger = logging.getLogger("jobly.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_companies = Table(
    "companies",
    metadata,
    Column("handle", String(25), primary_key=True),
    Column("name", Text, nullable=False),
    Column("num_employees", Integer, CheckConstraint("num_employees >= 0")),
    Column("description", Text, nullable=False, server_default=""),
    Column("logo_url", Text),
)

_jobs = Table(
    "jobs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("salary", Integer, CheckConstraint("salary >= 0")),
    Column("equity", Float, CheckConstraint("equity <= 1.0")),
    Column(
        "company_handle",
        String(25),
        ForeignKey("companies.handle", ondelete="CASCADE"),
        nullable=False,
    ),
)

_users = Table(
    "users",
    metadata,
    Column("username", String(25), primary_key=True),
    Column("password", Text, nullable=False),  # bcrypt hash
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("email", Text, nullable=False),
    Column("is_admin", Boolean, nullable=False, server_default="0"),
)

_applications = Table(
    "applications",
    metadata,
    Column("username", String(25), ForeignKey("users.username", ondelete="CASCADE"), nullable=False),
    Column("job_id", Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
    PrimaryKeyConstraint("username", "job_id"),
)


# ---------------------------------------------------------------------------
# SQLite connection setup
# ---------------------------------------------------------------------------


def _enable_foreign_keys(dbapi_conn, connection_record) -> None:
    """Turn on FK enforcement so ON DELETE CASCADE works.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_PLACEHOLDER_RE = re.compile(r"\$(\d+)")


def parse_criteria_string(query: str) -> dict[str, str]:
    """Split an ampersand-joined "key=value" string into a criteria mapping.

    "title=eng&minSalary=100" -> {"title": "eng", "minSalary": "100"}.
    Values stay strings; the database coerces them against the column type.
    Later duplicates of a key win.
    """
    return dict(parse_qsl(query, keep_blank_values=True))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BoardStore:
    """Repository for Company, Job, User and Application records."""

    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_foreign_keys)
        metadata.create_all(self.engine)

    def _bind(self, sql: str, values: Sequence[Any]) -> tuple[TextClause, dict[str, Any]]:
        """Turn positional-placeholder SQL into a text() clause and its bind params."""
        if self.engine.dialect.name == "sqlite":
            sql = sql.replace(" ILIKE ", " LIKE ")
        stmt = text(_PLACEHOLDER_RE.sub(lambda m: f":p{m.group(1)}", sql))
        return stmt, {f"p{idx}": value for idx, value in enumerate(values, start=1)}

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    # ------------------------------------------------------------------
    # Companies
    # ------------------------------------------------------------------

    def create_company(self, company: Company) -> Company:
        """Insert a company and return it as stored.

        Raises BadRequestError if the handle is already taken.
        """
        with self.engine.connect() as conn:
            dup = conn.execute(
                select(_companies.c.handle).where(_companies.c.handle == company.handle)
            ).fetchone()
            if dup is not None:
                raise BadRequestError(f"Duplicate company: {company.handle}")
            conn.execute(
                _companies.insert().values(
                    handle=company.handle,
                    name=company.name,
                    description=company.description,
                    num_employees=company.num_employees,
                    logo_url=company.logo_url,
                )
            )
            conn.commit()
        logger.info("Created company %s", company.handle)
        return self._company_row(company.handle)

    def find_all_companies(self) -> list[Company]:
        """Return all companies ordered by name."""
        with self.engine.connect() as conn:
            rows = conn.execute(_companies.select().order_by(_companies.c.name)).fetchall()
        return [_row_to_company(r) for r in rows]

    def get_company(self, handle: str) -> Company:
        """Return a company with its jobs. Raises NotFoundError if missing."""
        stmt = (
            select(
                _companies,
                _jobs.c.id.label("job_id"),
                _jobs.c.title,
                _jobs.c.salary,
                _jobs.c.equity,
            )
            .select_from(_companies.outerjoin(_jobs, _jobs.c.company_handle == _companies.c.handle))
            .where(_companies.c.handle == handle)
            .order_by(_jobs.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        if not rows:
            raise NotFoundError(f"No company: {handle}")

        company = _row_to_company(rows[0])
        company.jobs = [
            Job(
                id=r.job_id,
                title=r.title,
                salary=r.salary,
                equity=_equity(r.equity),
                company_handle=handle,
            )
            for r in rows
            if r.job_id is not None
        ]
        return company

    def update_company(self, handle: str, data: Mapping[str, Any]) -> Company:
        """Partially update a company.

        `data` uses the API's logical names (name, description, numEmployees,
        logoUrl); only the keys present are written.

        Raises BadRequestError for empty data, NotFoundError if missing.
        """
        update = sql_for_partial_update(data, COMPANY_FIELDS)
        handle_idx = len(update.values) + 1
        stmt, params = self._bind(
            f"UPDATE companies SET {update.set_clause} WHERE handle = ${handle_idx}",  # noqa: S608
            [*update.values, handle],
        )
        with self.engine.connect() as conn:
            result = conn.execute(stmt, params)
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"No company: {handle}")
        return self._company_row(handle)

    def remove_company(self, handle: str) -> None:
        """Delete a company and, through the FK cascade, its jobs."""
        with self.engine.connect() as conn:
            result = conn.execute(_companies.delete().where(_companies.c.handle == handle))
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"No company: {handle}")
        logger.info("Removed company %s", handle)

    def filter_companies(self, criteria: Mapping[str, Any]) -> list[Company]:
        """Search companies by name, minEmployees and/or maxEmployees.

        Keys with a None value are treated as absent. With no recognized key
        left this is find_all_companies().

        Raises BadRequestError if minEmployees > maxEmployees and
        NotFoundError if nothing matches.
        """
        criteria = {k: v for k, v in criteria.items() if v is not None}
        min_employees = criteria.get("minEmployees")
        max_employees = criteria.get("maxEmployees")
        if min_employees is not None and max_employees is not None and min_employees > max_employees:
            raise BadRequestError(
                f"minEmployees can't be greater than maxEmployees: {min_employees} > {max_employees}"
            )

        if not {"name", "minEmployees", "maxEmployees"} & criteria.keys():
            return self.find_all_companies()

        where = sql_for_filter_company(criteria)
        stmt, params = self._bind(
            "SELECT handle, name, description, num_employees, logo_url "  # noqa: S608
            f"FROM companies {where.where_clause} ORDER BY name",
            where.values,
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt, params).fetchall()
        if not rows:
            raise NotFoundError("No companies found within the specified criteria.")
        return [_row_to_company(r) for r in rows]

    def _company_row(self, handle: str) -> Company:
        with self.engine.connect() as conn:
            row = conn.execute(_companies.select().where(_companies.c.handle == handle)).fetchone()
        if row is None:
            raise NotFoundError(f"No company: {handle}")
        return _row_to_company(row)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def create_job(self, job: Job) -> Job:
        """Insert a job and return it with its assigned id.

        Raises NotFoundError if job.company_handle does not exist.
        """
        with self.engine.connect() as conn:
            company = conn.execute(
                select(_companies.c.handle).where(_companies.c.handle == job.company_handle)
            ).fetchone()
            if company is None:
                raise NotFoundError(f"companyHandle {job.company_handle} not found in database.")
            result = conn.execute(
                _jobs.insert().values(
                    title=job.title,
                    salary=job.salary,
                    equity=job.equity,
                    company_handle=job.company_handle,
                )
            )
            conn.commit()
            job_id = result.inserted_primary_key[0]
        logger.info("Created job %s for %s", job_id, job.company_handle)
        return self._job_row(job_id)

    def find_all_jobs(self) -> list[Job]:
        """Return all jobs ordered by title."""
        with self.engine.connect() as conn:
            rows = conn.execute(_jobs.select().order_by(_jobs.c.title, _jobs.c.id)).fetchall()
        return [_row_to_job(r) for r in rows]

    def get_job(self, job_id: int) -> Job:
        """Return a job with its company. Raises NotFoundError if missing."""
        stmt = (
            select(
                _jobs,
                _companies.c.name,
                _companies.c.description,
                _companies.c.num_employees,
                _companies.c.logo_url,
            )
            .select_from(_jobs.join(_companies, _jobs.c.company_handle == _companies.c.handle))
            .where(_jobs.c.id == job_id)
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        if row is None:
            raise NotFoundError(f"No job with id: {job_id}")

        job = _row_to_job(row)
        job.company = Company(
            handle=row.company_handle,
            name=row.name,
            description=row.description or "",
            num_employees=row.num_employees,
            logo_url=row.logo_url,
        )
        return job

    def update_job(self, job_id: int, data: Mapping[str, Any]) -> Job:
        """Partially update a job's title, salary and/or equity.

        The id and owning company are immutable: either key in `data` raises
        BadRequestError, as does empty data. Raises NotFoundError if missing.
        """
        if {"id", "companyHandle", "company_handle"} & data.keys():
            raise BadRequestError("id or company_handle cannot be updated")

        update = sql_for_partial_update(data, JOB_FIELDS)
        id_idx = len(update.values) + 1
        stmt, params = self._bind(
            f"UPDATE jobs SET {update.set_clause} WHERE id = ${id_idx}",  # noqa: S608
            [*update.values, job_id],
        )
        with self.engine.connect() as conn:
            result = conn.execute(stmt, params)
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"No job with id: {job_id}")
        return self._job_row(job_id)

    def remove_job(self, job_id: int) -> None:
        with self.engine.connect() as conn:
            result = conn.execute(_jobs.delete().where(_jobs.c.id == job_id))
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"No job with id: {job_id}")
        logger.info("Removed job %s", job_id)

    def filter_jobs(self, criteria: Union[Mapping[str, Any], str]) -> list[Job]:
        """Search jobs by title, minSalary and/or hasEquity.

        `criteria` is either a mapping or an ampersand-joined query string
        ("title=eng&hasEquity=true"). Keys with a None value are treated as
        absent. Criteria that restrict nothing (none at all, or only
        hasEquity=false) are find_all_jobs(), which may be empty.

        Raises NotFoundError if a real search matches nothing.
        """
        if isinstance(criteria, str):
            criteria = parse_criteria_string(criteria)
        criteria = {k: v for k, v in criteria.items() if v is not None}

        where = sql_for_filter_job(criteria)
        if not where.where_clause:
            return self.find_all_jobs()
        stmt, params = self._bind(
            "SELECT id, title, salary, equity, company_handle "  # noqa: S608
            f"FROM jobs {where.where_clause} ORDER BY title, id",
            where.values,
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt, params).fetchall()
        if not rows:
            raise NotFoundError("No jobs found within the specified criteria.")
        return [_row_to_job(r) for r in rows]

    def _job_row(self, job_id: int) -> Job:
        with self.engine.connect() as conn:
            row = conn.execute(_jobs.select().where(_jobs.c.id == job_id)).fetchone()
        if row is None:
            raise NotFoundError(f"No job with id: {job_id}")
        return _row_to_job(row)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    def authenticate(self, username: str, password: str) -> User:
        """Return the user if the password matches.

        Always runs bcrypt whether or not the user exists so response time
        does not reveal valid usernames.

        Raises UnauthorizedError on unknown username or wrong password.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        if row is None:
            verify_password(password, dummy_hash())
            raise UnauthorizedError("Invalid username/password")
        if not verify_password(password, row.password):
            raise UnauthorizedError("Invalid username/password")
        return _row_to_user(row)

    def register(self, user: User, password: str) -> User:
        """Insert a user with a freshly hashed password.

        Raises BadRequestError if the username is already taken.
        """
        with self.engine.connect() as conn:
            dup = conn.execute(select(_users.c.username).where(_users.c.username == user.username)).fetchone()
            if dup is not None:
                raise BadRequestError(f"Duplicate username: {user.username}")
            conn.execute(
                _users.insert().values(
                    username=user.username,
                    password=hash_password(password),
                    first_name=user.first_name,
                    last_name=user.last_name,
                    email=user.email,
                    is_admin=bool(user.is_admin),
                )
            )
            conn.commit()
        logger.info("Registered user %s (admin=%s)", user.username, bool(user.is_admin))
        return self._user_row(user.username)

    def find_all_users(self) -> list[User]:
        """Return all users ordered by username, each with applied job ids."""
        stmt = (
            select(_users, _applications.c.job_id)
            .select_from(_users.outerjoin(_applications, _applications.c.username == _users.c.username))
            .order_by(_users.c.username, _applications.c.job_id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()

        users: dict[str, User] = {}
        for row in rows:
            if row.username not in users:
                users[row.username] = _row_to_user(row)
            if row.job_id is not None:
                users[row.username].jobs.append(row.job_id)
        return list(users.values())

    def get_user(self, username: str) -> User:
        """Return a user with the jobs they applied to. Raises NotFoundError if missing."""
        stmt = (
            select(
                _users,
                _applications.c.job_id,
                _jobs.c.title,
                _jobs.c.company_handle,
                _companies.c.name.label("company_name"),
            )
            .select_from(
                _users.outerjoin(_applications, _applications.c.username == _users.c.username)
                .outerjoin(_jobs, _applications.c.job_id == _jobs.c.id)
                .outerjoin(_companies, _jobs.c.company_handle == _companies.c.handle)
            )
            .where(_users.c.username == username)
            .order_by(_applications.c.job_id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        if not rows:
            raise NotFoundError(f"No user: {username}")

        user = _row_to_user(rows[0])
        user.jobs = [
            Application(
                job_id=r.job_id,
                title=r.title,
                company_handle=r.company_handle,
                company_name=r.company_name,
            )
            for r in rows
            if r.job_id is not None
        ]
        return user

    def update_user(self, username: str, data: Mapping[str, Any]) -> User:
        """Partially update a user (firstName, lastName, email, isAdmin, password).

        A new password is hashed before it is written. Callers must have
        validated `data` -- this can make a user an admin.

        Raises BadRequestError for empty data, NotFoundError if missing.
        """
        data = dict(data)
        if "password" in data:
            data["password"] = hash_password(data["password"])

        update = sql_for_partial_update(data, USER_FIELDS)
        username_idx = len(update.values) + 1
        stmt, params = self._bind(
            f"UPDATE users SET {update.set_clause} WHERE username = ${username_idx}",  # noqa: S608
            [*update.values, username],
        )
        with self.engine.connect() as conn:
            result = conn.execute(stmt, params)
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"No user: {username}")
        return self._user_row(username)

    def remove_user(self, username: str) -> None:
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.username == username))
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"No user: {username}")
        logger.info("Removed user %s", username)

    def apply_to_job(self, username: str, job_id: int) -> int:
        """Record that `username` applied to `job_id` and return the job id.

        Raises NotFoundError for an unknown user or job and BadRequestError
        if the application already exists.
        """
        with self.engine.connect() as conn:
            user = conn.execute(select(_users.c.username).where(_users.c.username == username)).fetchone()
            if user is None:
                raise NotFoundError(f"No user: {username}")
            job = conn.execute(select(_jobs.c.id).where(_jobs.c.id == job_id)).fetchone()
            if job is None:
                raise NotFoundError(f"No job with id: {job_id}")
            existing = conn.execute(
                select(_applications.c.job_id).where(
                    (_applications.c.username == username) & (_applications.c.job_id == job_id)
                )
            ).fetchone()
            if existing is not None:
                raise BadRequestError("This user has already applied to this job.")
            conn.execute(_applications.insert().values(username=username, job_id=job_id))
            conn.commit()
        logger.info("User %s applied to job %s", username, job_id)
        return job_id

    def _user_row(self, username: str) -> User:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        if row is None:
            raise NotFoundError(f"No user: {username}")
        return _row_to_user(row)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _equity(value) -> Optional[float]:
    return float(value) if value is not None else None


def _row_to_company(row) -> Company:
    return Company(
        handle=row.handle,
        name=row.name,
        description=row.description or "",
        num_employees=row.num_employees,
        logo_url=row.logo_url,
    )


def _row_to_job(row) -> Job:
    return Job(
        id=row.id,
        title=row.title,
        salary=row.salary,
        equity=_equity(row.equity),
        company_handle=row.company_handle,
    )


def _row_to_user(row) -> User:
    # The password hash stays in the store; nothing outside authenticate() needs it.
    return User(
        username=row.username,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        is_admin=bool(row.is_admin),
    )
