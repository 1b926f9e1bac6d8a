"""foundryhub command line interface."""

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable
from datetime import timedelta

import uvicorn

from foundryhub.app.config import Settings, get_settings
from foundryhub.app.container import ServiceContainer
from foundryhub.app.logging import setup_logging
from foundryhub.app.main import create_app, open_services
from foundryhub.core.domain import HealthStatus
from foundryhub.core.errors import FoundryHubError
from foundryhub.core.models import FoundryInstance
from foundryhub.services import startup_recovery


def _print_instance(instance: FoundryInstance, health: HealthStatus | None = None) -> None:
    line = f"{instance.id}  {instance.name:<20} {instance.port:<6} {instance.status:<9}"
    if health is not None:
        line += f" {health}"
    print(line)


async def list_instances(services: ServiceContainer) -> None:
    """List all instances with health."""
    pairs = await services.listing.list_with_health()
    if not pairs:
        print("No instances found")
        return

    print(f"{'ID':<26}  {'Name':<20} {'Port':<6} {'Status':<9} Health")
    print("-" * 75)
    for instance, health in pairs:
        _print_instance(instance, health)


async def create_instance(
    services: ServiceContainer, name: str, port: int, owner: str | None
) -> None:
    """Create and start an instance."""
    instance = await services.instances.create_instance(name, port, owner)
    _print_instance(instance, await services.prober.probe(instance))


async def start_instance(services: ServiceContainer, instance_id: str) -> None:
    """Start an instance."""
    instance = await services.instances.start_instance(instance_id)
    _print_instance(instance, await services.prober.probe(instance))


async def stop_instance(services: ServiceContainer, instance_id: str) -> None:
    """Stop an instance."""
    instance = await services.instances.stop_instance(instance_id)
    _print_instance(instance, HealthStatus.UNKNOWN)


async def delete_instance(
    services: ServiceContainer, instance_id: str, purge_data: bool
) -> None:
    """Delete an instance."""
    await services.instances.delete_instance(instance_id, purge_data=purge_data)
    print(f"Instance {instance_id} deleted")


async def instance_status(services: ServiceContainer, instance_id: str) -> None:
    """Reconcile and print instance status."""
    instance = await services.instances.reconcile_status(instance_id)
    print(instance.status)


async def reconcile(services: ServiceContainer) -> None:
    """Reconcile every instance with the engine."""
    grace = timedelta(seconds=services.settings.recovery.creating_grace_seconds)
    fixed = await startup_recovery(
        services.repository, services.instances, creating_grace=grace
    )
    print(f"Reconciled: {fixed} instance(s) changed")


async def _run(
    settings: Settings, command: Callable[[ServiceContainer], Awaitable[None]]
) -> None:
    services = await open_services(settings)
    try:
        await command(services)
    finally:
        await services.close()


def serve(settings: Settings) -> None:
    """Run the HTTP API under uvicorn."""
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Foundry VTT instance management",
        prog="foundryhub",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the HTTP API")
    subparsers.add_parser("list", help="List instances with health")

    create_parser = subparsers.add_parser("create", help="Create and start an instance")
    create_parser.add_argument("name", help="Unique instance name")
    create_parser.add_argument("port", type=int, help="Host port to publish on")
    create_parser.add_argument("--owner", help="Owner identity reference")

    for command, help_text in (
        ("start", "Start an instance"),
        ("stop", "Stop an instance"),
        ("status", "Reconcile and show instance status"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("instance_id", help="Instance ID")

    delete_parser = subparsers.add_parser("delete", help="Delete an instance")
    delete_parser.add_argument("instance_id", help="Instance ID")
    delete_parser.add_argument(
        "--purge-data",
        action="store_true",
        help="Also delete the instance data directory",
    )

    subparsers.add_parser("reconcile", help="Reconcile all instances with the engine")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(
        settings.logging.level,
        settings.logging.json_format,
        settings.logging.service_name,
    )

    if args.command == "serve":
        serve(settings)
        return

    commands: dict[str, Callable[[ServiceContainer], Awaitable[None]]] = {
        "list": list_instances,
        "create": lambda s: create_instance(s, args.name, args.port, args.owner),
        "start": lambda s: start_instance(s, args.instance_id),
        "stop": lambda s: stop_instance(s, args.instance_id),
        "delete": lambda s: delete_instance(s, args.instance_id, args.purge_data),
        "status": lambda s: instance_status(s, args.instance_id),
        "reconcile": reconcile,
    }

    try:
        asyncio.run(_run(settings, commands[args.command]))
    except FoundryHubError as e:
        print(f"Error: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
