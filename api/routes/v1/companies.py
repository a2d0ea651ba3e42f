"""
api/routes/v1/companies.py -- Company routes for the Jobly REST API.

Routes:
  POST   /companies            -- create company           (admin)
  GET    /companies            -- list / search companies  (public)
  GET    /companies/{handle}   -- company detail with jobs (public)
  PATCH  /companies/{handle}   -- partial update           (admin)
  DELETE /companies/{handle}   -- delete company and jobs  (admin)

Search parameters for GET /companies: name (case-insensitive substring),
minEmployees, maxEmployees. Any other query key is a 400.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    CompanyCreate,
    CompanyDetail,
    CompanyDetailResponse,
    CompanyFilter,
    CompanyListResponse,
    CompanyOut,
    CompanyResponse,
    CompanyUpdate,
    DeletedResponse,
    parse_query,
)
from auth.dependencies import require_admin
from board.models import Company
from board.store import BoardStore

router = APIRouter()


@router.post(
    "/companies",
    response_model=CompanyResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_company(request: Request, body: CompanyCreate) -> CompanyResponse:
    store: BoardStore = request.app.state.store
    company = store.create_company(
        Company(
            handle=body.handle,
            name=body.name,
            description=body.description,
            num_employees=body.num_employees,
            logo_url=body.logo_url,
        )
    )
    return CompanyResponse(company=CompanyOut.from_domain(company))


@router.get("/companies", response_model=CompanyListResponse)
def list_companies(request: Request) -> CompanyListResponse:
    """List all companies, or those matching the search parameters.

    A search that matches nothing is a 404, not an empty list.
    """
    store: BoardStore = request.app.state.store
    criteria = parse_query(CompanyFilter, request.query_params)
    companies = store.filter_companies(criteria.model_dump(by_alias=True, exclude_none=True))
    return CompanyListResponse(companies=[CompanyOut.from_domain(c) for c in companies])


@router.get("/companies/{handle}", response_model=CompanyDetailResponse)
def get_company(request: Request, handle: str) -> CompanyDetailResponse:
    store: BoardStore = request.app.state.store
    return CompanyDetailResponse(company=CompanyDetail.from_domain(store.get_company(handle)))


@router.patch(
    "/companies/{handle}",
    response_model=CompanyResponse,
    dependencies=[Depends(require_admin)],
)
def update_company(request: Request, handle: str, body: CompanyUpdate) -> CompanyResponse:
    """Update any of name, description, numEmployees, logoUrl. An empty body is a 400."""
    store: BoardStore = request.app.state.store
    data = body.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    company = store.update_company(handle, data)
    return CompanyResponse(company=CompanyOut.from_domain(company))


@router.delete(
    "/companies/{handle}",
    response_model=DeletedResponse,
    dependencies=[Depends(require_admin)],
)
def delete_company(request: Request, handle: str) -> DeletedResponse:
    store: BoardStore = request.app.state.store
    store.remove_company(handle)
    return DeletedResponse(deleted=handle)
