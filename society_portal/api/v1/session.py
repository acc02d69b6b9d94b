"""/v1/session - sign in, sign out and current session state"""

from fastapi import APIRouter, Depends

from society_portal.api.dependencies import PortalState, get_portal, get_session_store
from society_portal.api.v1.schemas import LoginRequest, RegisterRequest, SessionResponse, UserSchema
from society_portal.services.session_store import SessionStore

router = APIRouter()


def _session_response(store: SessionStore) -> SessionResponse:
    return SessionResponse(
        authenticated=store.is_authenticated,
        loading=store.loading,
        user=UserSchema.from_user(store.user) if store.is_authenticated else None,
    )


@router.get("/session", response_model=SessionResponse)
def get_session(store: SessionStore = Depends(get_session_store)):
    return _session_response(store)


@router.post("/session/login", response_model=SessionResponse)
async def login(
    request_body: LoginRequest,
    portal: PortalState = Depends(get_portal),
):
    """Authenticate against the remote API and keep the returned session"""
    portal.reset()
    await portal.session_store.authenticate(request_body.email, request_body.password)
    return _session_response(portal.session_store)


@router.post("/session/register", response_model=SessionResponse)
async def register(
    request_body: RegisterRequest,
    portal: PortalState = Depends(get_portal),
):
    portal.reset()
    await portal.session_store.register(request_body.name, request_body.email, request_body.password)
    return _session_response(portal.session_store)


@router.post("/session/logout", response_model=SessionResponse)
def logout(portal: PortalState = Depends(get_portal)):
    portal.session_store.logout()
    portal.reset()
    return _session_response(portal.session_store)
