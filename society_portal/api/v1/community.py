"""/v1 community pass-throughs: notices, announcements, events, profile, flats, rent, documents"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.responses import Response

from society_portal.api.dependencies import PortalState, get_client, get_portal, require_session
from society_portal.api.v1.schemas import NoticeSchema, ParticipationRequest, ProfileUpdateRequest
from society_portal.infrastructure.clients.portal import PortalClient

router = APIRouter(dependencies=[Depends(require_session)])

DOCUMENT_TYPES = ("ekyc", "agreement")


@router.get("/notices", response_model=List[NoticeSchema])
def drain_notices(portal: PortalState = Depends(get_portal)):
    """Outcome notices not yet shown, oldest first; reading them clears them"""
    return [NoticeSchema.from_notice(n) for n in portal.notices.drain()]


@router.get("/announcements")
async def list_announcements(client: PortalClient = Depends(get_client)) -> List[Dict[str, Any]]:
    return await client.get_announcements()


@router.get("/events")
async def list_events(client: PortalClient = Depends(get_client)) -> List[Dict[str, Any]]:
    return await client.get_events()


@router.post("/events/{event_id}/participation")
async def set_participation(
    event_id: str,
    request_body: ParticipationRequest,
    client: PortalClient = Depends(get_client),
) -> Dict[str, Any]:
    return await client.set_event_participation(event_id, request_body.status)


@router.get("/profile")
async def get_profile(client: PortalClient = Depends(get_client)) -> Dict[str, Any]:
    return await client.get_profile()


@router.patch("/profile")
async def update_profile(
    request_body: ProfileUpdateRequest,
    portal: PortalState = Depends(get_portal),
) -> Dict[str, Any]:
    """Update the remote profile and refresh the cached user"""
    profile = await portal.client.update_profile(request_body.changes)
    await portal.session_store.refresh_user()
    return profile


@router.get("/flats")
async def list_flats(client: PortalClient = Depends(get_client)) -> List[Dict[str, Any]]:
    return await client.get_my_flats()


@router.get("/rent/next-due")
async def next_rent_due(client: PortalClient = Depends(get_client)) -> Dict[str, Any]:
    return await client.get_next_rent_due()


@router.get("/rent/history")
async def rent_history(
    page: Optional[int] = Query(None, ge=1),
    client: PortalClient = Depends(get_client),
) -> List[Dict[str, Any]]:
    return await client.get_rent_payment_history(page=page)


@router.post("/documents/generate")
async def generate_documents(client: PortalClient = Depends(get_client)) -> Dict[str, Any]:
    result = await client.generate_documents()
    email_status = result.email_status
    return {
        "message": result.message,
        "email_sent": bool(email_status and email_status.sent),
        "email_configured": bool(email_status and email_status.configured),
    }


@router.get("/documents/{document_type}")
async def download_document(document_type: str, client: PortalClient = Depends(get_client)):
    """Generated tenant PDFs (ekyc | agreement)"""
    if document_type not in DOCUMENT_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown document type: {document_type}")
    content = await client.download_document(document_type)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{document_type}.pdf"'},
    )
