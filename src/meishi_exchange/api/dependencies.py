"""Dependency injection for the API layer."""

from fastapi import Request

from ..core.result import Result
from ..deeplink.manager import DeepLinkManager
from ..repositories.contacts import ContactRepository
from ..services import ServiceContainer, build_container
from .middleware import ProblemDetailsException


def get_container(request: Request) -> ServiceContainer:
    """Return the service container attached to the application.

    The container is built from the global configuration on first use when
    the application was created without one.
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        container = build_container()
        request.app.state.container = container
    return container


def get_contact_repository(request: Request) -> ContactRepository:
    """Get the contact repository instance."""
    return get_container(request).repository


def get_deep_link_manager(request: Request) -> DeepLinkManager:
    """Get the deep link manager instance."""
    return get_container(request).deep_links


def unwrap(result: Result):
    """Return a result's value or raise its error as Problem Details."""
    if result.is_failure:
        raise ProblemDetailsException.from_card_error(result.error)
    return result.value
