"""
api/routes/v1/jobs.py -- Job routes for the Jobly REST API.

Routes:
  POST   /jobs          -- create job              (admin)
  GET    /jobs          -- list / search jobs      (public)
  GET    /jobs/{id}     -- job detail with company (public)
  PATCH  /jobs/{id}     -- partial update          (admin)
  DELETE /jobs/{id}     -- delete job              (admin)

Search parameters for GET /jobs: title (case-insensitive substring),
minSalary, hasEquity (true restricts to jobs with non-zero equity; false is
the same as leaving it out). Any other query key is a 400.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    DeletedResponse,
    JobCreate,
    JobDetail,
    JobDetailResponse,
    JobFilter,
    JobListResponse,
    JobOut,
    JobResponse,
    JobUpdate,
    parse_query,
)
from auth.dependencies import require_admin
from board.models import Job
from board.store import BoardStore

router = APIRouter()


@router.post(
    "/jobs",
    response_model=JobResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_job(request: Request, body: JobCreate) -> JobResponse:
    """Create a job. Unknown companyHandle is a 404."""
    store: BoardStore = request.app.state.store
    job = store.create_job(
        Job(
            title=body.title,
            salary=body.salary,
            equity=body.equity,
            company_handle=body.company_handle,
        )
    )
    return JobResponse(job=JobOut.from_domain(job))


@router.get("/jobs", response_model=JobListResponse)
def list_jobs(request: Request) -> JobListResponse:
    store: BoardStore = request.app.state.store
    criteria = parse_query(JobFilter, request.query_params).model_dump(by_alias=True, exclude_none=True)
    jobs = store.filter_jobs(criteria) if criteria else store.find_all_jobs()
    return JobListResponse(jobs=[JobOut.from_domain(j) for j in jobs])


@router.get("/jobs/{job_id}", response_model=JobDetailResponse)
def get_job(request: Request, job_id: int) -> JobDetailResponse:
    store: BoardStore = request.app.state.store
    return JobDetailResponse(job=JobDetail.from_domain(store.get_job(job_id)))


@router.patch(
    "/jobs/{job_id}",
    response_model=JobResponse,
    dependencies=[Depends(require_admin)],
)
def update_job(request: Request, job_id: int, body: JobUpdate) -> JobResponse:
    """Update any of title, salary, equity. id and companyHandle are rejected by the schema."""
    store: BoardStore = request.app.state.store
    data = body.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    job = store.update_job(job_id, data)
    return JobResponse(job=JobOut.from_domain(job))


@router.delete(
    "/jobs/{job_id}",
    response_model=DeletedResponse,
    dependencies=[Depends(require_admin)],
)
def delete_job(request: Request, job_id: int) -> DeletedResponse:
    store: BoardStore = request.app.state.store
    store.remove_job(job_id)
    return DeletedResponse(deleted=str(job_id))
