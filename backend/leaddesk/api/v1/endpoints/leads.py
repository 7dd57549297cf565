"""
Leads API
Owner-side lead management: listing, intake, CSV import/export and cleanup.

Every write is followed by a refetch inside the lead collection, so each
response reflects the store as of that write.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from leaddesk.api.v1.dependencies import get_container, store_error
from leaddesk.core.container import ConsoleContainer
from leaddesk.domain.interfaces.lead_store import LeadStoreError
from leaddesk.domain.models.lead import Lead, LeadCandidate, LeadStatus
from leaddesk.domain.services.csv_transfer import decode_upload, export_leads_csv, parse_leads_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


class LeadListResponse(BaseModel):
    """Snapshot slice returned to the owner console"""
    revision: int
    total: int
    items: List[Lead]


class BulkImportResponse(BaseModel):
    """Result of a CSV import"""
    total_rows: int
    imported: int
    invalid: int


class DeleteResponse(BaseModel):
    deleted: int


@router.get("/", response_model=LeadListResponse)
async def list_leads(
    q: str = Query("", description="Name or phone substring"),
    status: Optional[LeadStatus] = Query(None),
    refresh: bool = Query(False, description="Refetch from the store first"),
    container: ConsoleContainer = Depends(get_container),
):
    """List leads from the current snapshot, newest first"""
    collection = container.collection
    if refresh:
        try:
            await collection.refresh()
        except LeadStoreError as e:
            raise store_error(e)

    items = collection.search(q, status)
    return LeadListResponse(
        revision=collection.revision,
        total=len(collection.snapshot.leads),
        items=items,
    )


@router.post("/", response_model=Lead, status_code=201)
async def add_lead(
    candidate: LeadCandidate,
    container: ConsoleContainer = Depends(get_container),
):
    """
    Add a single lead.
    
    A blank name gets a placeholder; a bad or duplicate number is still
    stored, as an invalid lead with the reason in its notes.
    """
    try:
        return await container.collection.add(candidate)
    except LeadStoreError as e:
        raise store_error(e)


@router.post("/upload", response_model=BulkImportResponse)
async def upload_leads(
    file: UploadFile = File(..., description="CSV file with name,phone rows"),
    container: ConsoleContainer = Depends(get_container),
):
    """
    Bulk import leads from CSV.
    
    CSV Format Expected:
        name,phone
        Asha Rao,98765 43210
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are supported")

    content = await file.read()
    try:
        text_content = decode_upload(content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    candidates = parse_leads_csv(text_content)
    if not candidates:
        raise HTTPException(status_code=400, detail="No name,phone rows found in CSV")

    try:
        inserted = await container.collection.add_many(candidates)
    except LeadStoreError as e:
        raise store_error(e)

    invalid = sum(1 for lead in inserted if lead.status == LeadStatus.INVALID)
    logger.info(f"CSV import: {len(inserted)} rows stored, {invalid} invalid")
    return BulkImportResponse(
        total_rows=len(candidates),
        imported=len(inserted) - invalid,
        invalid=invalid,
    )


@router.get("/export")
async def export_leads(container: ConsoleContainer = Depends(get_container)):
    """Download the whole collection as CSV"""
    body = export_leads_csv(container.collection.snapshot.leads)
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="leads.csv"'},
    )


@router.post("/clear", status_code=204)
async def clear_leads(container: ConsoleContainer = Depends(get_container)):
    """Remove every lead"""
    try:
        await container.collection.clear_all()
    except LeadStoreError as e:
        raise store_error(e)
    logger.warning("All leads cleared")


@router.delete("/", response_model=DeleteResponse)
async def delete_leads_by_status(
    status: LeadStatus = Query(..., description="Delete every lead with this status"),
    container: ConsoleContainer = Depends(get_container),
):
    try:
        deleted = await container.collection.delete_by_status(status)
    except LeadStoreError as e:
        raise store_error(e)
    return DeleteResponse(deleted=deleted)


@router.get("/{lead_id}", response_model=Lead)
async def get_lead(lead_id: str, container: ConsoleContainer = Depends(get_container)):
    lead = container.collection.get(lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.post("/{lead_id}/recycle", response_model=Lead)
async def recycle_lead(lead_id: str, container: ConsoleContainer = Depends(get_container)):
    """Send a lead back to the fresh pool, dropping its notes and talk time"""
    try:
        await container.collection.recycle(lead_id)
    except LeadStoreError as e:
        raise store_error(e)
    lead = container.collection.get(lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.delete("/{lead_id}", status_code=204)
async def delete_lead(lead_id: str, container: ConsoleContainer = Depends(get_container)):
    try:
        await container.collection.delete(lead_id)
    except LeadStoreError as e:
        raise store_error(e)
