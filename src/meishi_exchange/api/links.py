"""Deep link API endpoints."""

from fastapi import APIRouter, Depends, Query, status

from ..core.enums import DeepLinkActionKind
from ..deeplink.manager import DeepLinkManager
from ..domain.models import DeepLinkAction
from ..services import ServiceContainer
from ..utils.logging_config import get_module_logger
from .dependencies import get_container, get_deep_link_manager, unwrap
from .middleware import ProblemDetailsException
from .schemas import (
    LinkCreate,
    LinkResolveRequest,
    LinkResolveResponse,
    LinkResponse,
    PendingActionResponse,
    ProblemDetails,
    SchemeUrlRequest,
    SchemeUrlResponse,
)

logger = get_module_logger(__name__)

router = APIRouter(prefix="/v1/links", tags=["links"])

# Upper bound for ?wait=true so a stuck save cannot hold the request forever
RESOLVE_WAIT_SECONDS = 5.0


@router.post(
    "",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ProblemDetails, "description": "Card could not be encoded"}},
)
def create_link(
    payload: LinkCreate,
    container: ServiceContainer = Depends(get_container),
) -> LinkResponse:
    """Create a share, App Clip or temporary link for a card."""
    hours = payload.expiration_hours
    if hours is None:
        hours = container.config.links.default_expiration_hours

    url = unwrap(container.codec.encode(payload.card, payload.level, payload.kind, hours))
    return LinkResponse(url=url, kind=payload.kind, level=payload.level)


@router.post("/resolve", response_model=LinkResolveResponse)
def resolve_link(
    payload: LinkResolveRequest,
    wait: bool = Query(False, description="Wait for the received card to be saved"),
    manager: DeepLinkManager = Depends(get_deep_link_manager),
) -> LinkResolveResponse:
    """
    Handle an incoming link or scanned QR text.

    The card is saved asynchronously. With ``wait=true`` the response is
    returned after the save finished and includes its outcome.
    """
    universal = False
    if payload.url is not None:
        universal = manager.is_universal_link(payload.url)
        accepted = manager.handle_incoming_url(payload.url)
    else:
        accepted = manager.handle_qr_code_scan(payload.text)

    if accepted and wait and not manager.wait_idle(timeout=RESOLVE_WAIT_SECONDS):
        logger.warning("Timed out waiting for received card to be saved")

    return LinkResolveResponse(
        accepted=accepted, universal_link=universal, action=manager.pending_action
    )


@router.post("/scheme", response_model=SchemeUrlResponse)
def create_scheme_link(
    payload: SchemeUrlRequest,
    manager: DeepLinkManager = Depends(get_deep_link_manager),
) -> SchemeUrlResponse:
    """Build a custom-scheme URL that opens a route inside the app."""
    return SchemeUrlResponse(url=manager.scheme_url(payload.path, payload.parameters))


@router.get("/pending", response_model=PendingActionResponse)
def consume_pending_action(
    manager: DeepLinkManager = Depends(get_deep_link_manager),
) -> PendingActionResponse:
    """Return the pending UI action and clear it."""
    return PendingActionResponse(
        action=manager.consume_pending_action(),
        last_received_card=manager.last_received_card,
    )


@router.post(
    "/navigate/{kind}",
    response_model=DeepLinkAction,
    responses={400: {"model": ProblemDetails, "description": "Not a navigation action"}},
)
def request_navigation(
    kind: DeepLinkActionKind, manager: DeepLinkManager = Depends(get_deep_link_manager)
) -> DeepLinkAction:
    try:
        return manager.request_navigation(kind)
    except ValueError as e:
        raise ProblemDetailsException(
            status_code=status.HTTP_400_BAD_REQUEST,
            title="Bad Request",
            detail=str(e),
        )
