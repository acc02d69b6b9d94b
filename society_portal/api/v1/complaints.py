"""/v1/complaints - resident complaints and the officer queue"""

from typing import List

from fastapi import APIRouter, Depends, Query

from society_portal.api.dependencies import get_client, require_session
from society_portal.api.v1.schemas import ComplaintCreateRequest, ComplaintSchema, ComplaintStatusRequest
from society_portal.domain.complaints import ALL, filter_complaints
from society_portal.domain.models import Role
from society_portal.infrastructure.clients.portal import PortalClient
from society_portal.services.session_store import SessionStore

router = APIRouter()


@router.get("/complaints", response_model=List[ComplaintSchema])
async def list_complaints(
    q: str = Query(""),
    status: str = Query(ALL),
    category: str = Query(ALL),
    client: PortalClient = Depends(get_client),
    store: SessionStore = Depends(require_session),
):
    """
    Officers see the assigned queue, everyone else their own complaints.

    Filtering happens locally on the fetched list.
    """
    if store.user.role == Role.OFFICER:
        complaints = await client.get_officer_complaints()
    else:
        complaints = await client.get_my_complaints()
    return [
        ComplaintSchema.from_complaint(c)
        for c in filter_complaints(complaints, query=q, status=status, category=category)
    ]


@router.post("/complaints", response_model=ComplaintSchema, status_code=201)
async def create_complaint(
    request_body: ComplaintCreateRequest,
    client: PortalClient = Depends(get_client),
    store: SessionStore = Depends(require_session),
):
    complaint = await client.create_complaint(
        request_body.title,
        request_body.description,
        request_body.category,
        flat_id=request_body.flat_id,
    )
    return ComplaintSchema.from_complaint(complaint)


@router.get("/complaints/{complaint_id}", response_model=ComplaintSchema)
async def get_complaint(
    complaint_id: str,
    client: PortalClient = Depends(get_client),
    store: SessionStore = Depends(require_session),
):
    return ComplaintSchema.from_complaint(await client.get_complaint(complaint_id))


@router.patch("/complaints/{complaint_id}/status", response_model=ComplaintSchema)
async def update_complaint_status(
    complaint_id: str,
    request_body: ComplaintStatusRequest,
    client: PortalClient = Depends(get_client),
    store: SessionStore = Depends(require_session),
):
    complaint = await client.update_complaint_status(complaint_id, request_body.status)
    return ComplaintSchema.from_complaint(complaint)


@router.post("/complaints/{complaint_id}/assign", response_model=ComplaintSchema)
async def assign_complaint(
    complaint_id: str,
    client: PortalClient = Depends(get_client),
    store: SessionStore = Depends(require_session),
):
    return ComplaintSchema.from_complaint(await client.assign_complaint_to_me(complaint_id))
