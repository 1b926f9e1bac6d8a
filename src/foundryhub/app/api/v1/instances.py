"""Instance API endpoints (administrators only).

Endpoints:
- GET /api/v1/instances - List instances (optionally with health)
- POST /api/v1/instances - Create and start instance
- GET /api/v1/instances/{id} - Get instance
- GET /api/v1/instances/{id}/status - Reconcile status with the engine
- POST /api/v1/instances/{id}:start - Start instance
- POST /api/v1/instances/{id}:stop - Stop instance
- DELETE /api/v1/instances/{id} - Delete instance
"""

from fastapi import APIRouter, Depends, Query, Response, status

from foundryhub.app.api.v1.dependencies import InstanceSvc, Listing, Prober, require_admin
from foundryhub.app.api.v1.schemas import (
    InstanceCreate,
    InstanceListResponse,
    InstanceResponse,
    InstanceStatusResponse,
)
from foundryhub.core.domain import HealthStatus, InstanceStatus

router = APIRouter(
    prefix="/instances",
    tags=["instances"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=InstanceListResponse)
async def list_instances(
    service: InstanceSvc,
    listing: Listing,
    health: bool = Query(default=True, description="Probe each running instance"),
) -> InstanceListResponse:
    """List all instances."""
    if health:
        pairs = await listing.list_with_health()
        items = [InstanceResponse.from_instance(i, h) for i, h in pairs]
    else:
        instances = await service.list_instances()
        items = [InstanceResponse.from_instance(i) for i in instances]
    return InstanceListResponse(items=items)


@router.post("", response_model=InstanceResponse, status_code=status.HTTP_201_CREATED)
async def create_instance(
    body: InstanceCreate,
    service: InstanceSvc,
    prober: Prober,
) -> InstanceResponse:
    """Create an instance and start its container."""
    instance = await service.create_instance(body.name, body.port, body.owner_id)
    return InstanceResponse.from_instance(instance, await prober.probe(instance))


@router.get("/{instance_id}", response_model=InstanceResponse)
async def get_instance(instance_id: str, service: InstanceSvc) -> InstanceResponse:
    """Get instance by ID."""
    return InstanceResponse.from_instance(await service.get_instance(instance_id))


@router.get("/{instance_id}/status", response_model=InstanceStatusResponse)
async def get_instance_status(
    instance_id: str, service: InstanceSvc
) -> InstanceStatusResponse:
    """Reconcile the stored status with the engine and return it."""
    instance = await service.reconcile_status(instance_id)
    return InstanceStatusResponse(id=instance.id, status=InstanceStatus(instance.status))


@router.post("/{instance_id}:start", response_model=InstanceResponse)
async def start_instance(
    instance_id: str,
    service: InstanceSvc,
    prober: Prober,
) -> InstanceResponse:
    """Start an instance. The response carries a fresh health probe."""
    instance = await service.start_instance(instance_id)
    return InstanceResponse.from_instance(instance, await prober.probe(instance))


@router.post("/{instance_id}:stop", response_model=InstanceResponse)
async def stop_instance(instance_id: str, service: InstanceSvc) -> InstanceResponse:
    """Stop a running instance."""
    instance = await service.stop_instance(instance_id)
    return InstanceResponse.from_instance(instance, HealthStatus.UNKNOWN)


@router.delete("/{instance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_instance(
    instance_id: str,
    service: InstanceSvc,
    purge_data: bool = Query(default=False, description="Also delete the data directory"),
) -> Response:
    """Delete an instance and its container."""
    await service.delete_instance(instance_id, purge_data=purge_data)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
