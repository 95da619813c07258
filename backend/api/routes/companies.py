"""Company catalog endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.api.deps import Services, get_services
from backend.api.schemas import (
    BulkUpdateRequest,
    BulkUpdateResponse,
    CompanyListResponse,
    CompanyResponse,
    NoteCreate,
    StatusUpdate,
    pagination,
)
from backend.db.stores import SORT_KEYS, CompanyFilters, InvalidStatusError

router = APIRouter()


@router.get("", response_model=CompanyListResponse)
def list_companies(
    location: str | None = None,
    industry: str | None = None,
    size: str | None = None,
    status: str | None = None,
    min_match_score: int | None = Query(default=None, ge=0, le=100),
    min_wlb_score: float | None = Query(default=None, ge=0, le=10),
    has_contacts: bool | None = None,
    local_only: bool = False,
    q: str | None = None,
    sort_by: str = Query(default="match", pattern=f"^({'|'.join(SORT_KEYS)})$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    services: Services = Depends(get_services),
):
    """Filtered, sorted and paginated catalog."""
    filters = CompanyFilters(
        location=location,
        industry=industry,
        size=size,
        status=status,
        min_match_score=min_match_score,
        min_wlb_score=min_wlb_score,
        has_contacts=has_contacts,
        local_only=local_only,
        q=q,
    )
    companies, total = services.companies.search(filters, sort_by=sort_by, page=page, limit=limit)
    return CompanyListResponse(
        companies=[CompanyResponse.from_record(c) for c in companies],
        pagination=pagination(page, limit, total),
    )


@router.get("/stats/summary")
def stats_summary(services: Services = Depends(get_services)):
    """Aggregate catalog statistics."""
    return services.companies.summary()


@router.post("/bulk-update", response_model=BulkUpdateResponse)
def bulk_update(data: BulkUpdateRequest, services: Services = Depends(get_services)):
    """Set status and/or append a note on several companies."""
    if data.status is None and not data.note:
        raise HTTPException(status_code=400, detail="Nothing to update")
    try:
        updated = services.companies.bulk_update(data.company_ids, status=data.status, note=data.note)
    except InvalidStatusError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BulkUpdateResponse(updated=updated)


@router.get("/{company_id}", response_model=CompanyResponse)
def get_company(company_id: str, services: Services = Depends(get_services)):
    company = services.companies.get(company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return CompanyResponse.from_record(company)


@router.put("/{company_id}/status", response_model=CompanyResponse)
def update_status(company_id: str, data: StatusUpdate, services: Services = Depends(get_services)):
    try:
        company = services.companies.update_status(company_id, data.status)
    except InvalidStatusError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return CompanyResponse.from_record(company)


@router.post("/{company_id}/notes", response_model=CompanyResponse)
def add_note(company_id: str, data: NoteCreate, services: Services = Depends(get_services)):
    try:
        company = services.companies.add_note(company_id, data.content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return CompanyResponse.from_record(company)


@router.delete("/{company_id}")
def delete_company(company_id: str, services: Services = Depends(get_services)):
    if not services.companies.delete(company_id):
        raise HTTPException(status_code=404, detail="Company not found")
    return {"success": True, "message": "Company deleted"}
