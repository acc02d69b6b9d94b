"""/v1/onboarding - PG tenant onboarding wizard"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse

from society_portal.api.dependencies import PortalState, get_portal, require_session
from society_portal.api.v1.schemas import AgreementAcceptRequest, NoticeSchema, OnboardingResponse
from society_portal.domain.models import ConsentFlags, KycForm, UploadedFile
from society_portal.services.onboarding import OnboardingWizard

router = APIRouter(dependencies=[Depends(require_session)])


def _wizard(portal: PortalState) -> OnboardingWizard:
    wizard = portal.wizard
    if wizard is None or wizard.state is None or wizard.completed:
        raise HTTPException(status_code=409, detail="Onboarding wizard is not open")
    return wizard


def _state_response(portal: PortalState, wizard: OnboardingWizard) -> OnboardingResponse:
    return OnboardingResponse.from_state(wizard.state, wizard.otp_hint, portal.notices.drain())


async def _upload(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    if file is None or not file.filename:
        return None
    return UploadedFile(
        filename=file.filename,
        content=await file.read(),
        content_type=file.content_type or "image/jpeg",
    )


@router.get("/onboarding", response_model=OnboardingResponse)
async def open_onboarding(portal: PortalState = Depends(get_portal)):
    """
    Mount the wizard.

    The starting step is derived from the server's kyc/onboarding status;
    completed tenants get a redirect instead of a wizard.
    """
    wizard = portal.open_wizard()
    redirect_to = await wizard.mount()
    if redirect_to is not None:
        return OnboardingResponse(redirect_to=redirect_to, completed=True)
    return _state_response(portal, wizard)


@router.post("/onboarding/acknowledge", response_model=OnboardingResponse)
def acknowledge_details(portal: PortalState = Depends(get_portal)):
    wizard = _wizard(portal)
    wizard.acknowledge_details()
    return _state_response(portal, wizard)


@router.post("/onboarding/back", response_model=OnboardingResponse)
def step_back(portal: PortalState = Depends(get_portal)):
    wizard = _wizard(portal)
    wizard.go_back()
    return _state_response(portal, wizard)


@router.post("/onboarding/ekyc", response_model=OnboardingResponse)
async def submit_ekyc(
    full_name: str = Form(""),
    date_of_birth: str = Form(""),
    gender: str = Form(""),
    father_mother_name: str = Form(""),
    phone: str = Form(""),
    email: str = Form(""),
    permanent_address: str = Form(""),
    occupation: str = Form(""),
    company_college_name: str = Form(""),
    id_type: str = Form("AADHAAR"),
    id_number: str = Form(""),
    id_front: Optional[UploadFile] = File(None),
    id_back: Optional[UploadFile] = File(None),
    selfie: Optional[UploadFile] = File(None),
    portal: PortalState = Depends(get_portal),
):
    """Validate and forward the eKYC form; advances to AGREEMENT on success"""
    wizard = _wizard(portal)
    form = KycForm(
        full_name=full_name,
        date_of_birth=date_of_birth,
        gender=gender,
        father_mother_name=father_mother_name,
        phone=phone,
        email=email,
        permanent_address=permanent_address,
        occupation=occupation,
        company_college_name=company_college_name,
        id_type=id_type,
        id_number=id_number,
        id_front=await _upload(id_front),
        id_back=await _upload(id_back),
        selfie=await _upload(selfie),
    )
    await wizard.submit_kyc(form)
    return _state_response(portal, wizard)


@router.get("/onboarding/agreement", response_class=HTMLResponse)
async def preview_agreement(portal: PortalState = Depends(get_portal)):
    return HTMLResponse(await _wizard(portal).preview_agreement())


@router.post("/onboarding/agreement/accept", response_model=OnboardingResponse)
async def accept_agreement(
    request_body: AgreementAcceptRequest,
    portal: PortalState = Depends(get_portal),
):
    """Finish onboarding; document generation problems only add warnings"""
    wizard = _wizard(portal)
    flags = request_body.consent_flags
    redirect_to = await wizard.accept_agreement(
        request_body.otp,
        ConsentFlags(
            personal_details_correct=flags.personal_details_correct,
            pg_details_agreed=flags.pg_details_agreed,
            kyc_authorized=flags.kyc_authorized,
            agreement_accepted=flags.agreement_accepted,
        ),
    )
    return OnboardingResponse(
        redirect_to=redirect_to,
        completed=True,
        notices=[NoticeSchema.from_notice(n) for n in portal.notices.drain()],
    )
