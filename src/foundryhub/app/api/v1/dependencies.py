"""API v1 dependencies for foundryhub.

Services are built once per app lifespan and stored on app.state.
"""

import secrets
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from foundryhub.app.container import ServiceContainer
from foundryhub.core.errors import ForbiddenError, UnauthorizedError
from foundryhub.services import HealthProber, InstanceListing, InstanceService

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


Services = Annotated[ServiceContainer, Depends(get_services)]


async def require_admin(
    services: Services,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> None:
    """Allow only callers presenting the admin bearer token.

    Raises:
        UnauthorizedError: No bearer token
        ForbiddenError: Token does not identify an administrator
    """
    if credentials is None:
        raise UnauthorizedError()

    expected = services.settings.auth.admin_token.get_secret_value()
    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise ForbiddenError()


def get_instance_service(services: Services) -> InstanceService:
    return services.instances


def get_listing(services: Services) -> InstanceListing:
    return services.listing


def get_prober(services: Services) -> HealthProber:
    return services.prober


InstanceSvc = Annotated[InstanceService, Depends(get_instance_service)]
Listing = Annotated[InstanceListing, Depends(get_listing)]
Prober = Annotated[HealthProber, Depends(get_prober)]
