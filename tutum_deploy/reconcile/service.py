"""Service steps: fetch, create, start, update, redeploy."""

from tutum_deploy.context import DeployContext
from tutum_deploy.exceptions import DependencyNotFoundError
from tutum_deploy.logging_config import get_logger
from tutum_deploy.models.remote import RemoteRecord
from tutum_deploy.models.service import Service
from tutum_deploy.reconcile.wait import wait_for_state

logger = get_logger(__name__)

STARTABLE_STATES = {"Init", "Stopped", "Not running"}
SETTLED_STATES = {"Init", "Stopped", "Not running", "Running"}


def fetch_service(ctx: DeployContext, service: Service) -> None:
    """Attach the first active service with this name and resolve its tags.

    Terminated services keep their name, so stale matches are skipped. The
    resolved ``tag_refs`` only serve the warning for tags nothing carries.
    """
    logger.info(f"getting service {service.name}")
    objects = ctx.api.fetch_objects(
        "/service/", f"fetching service {service.name}", params={"name": service.name}
    )
    active = [
        record for record in map(RemoteRecord.model_validate, objects) if not record.is_terminal
    ]
    if len(active) > 1:
        logger.warning(
            f"{len(active)} active services named {service.name}, using {active[0].uuid}"
        )
    service.remote = active[0] if active else None
    if service.remote:
        logger.info(f"service {service.name} state: {service.remote.state}")

    service.tag_refs = ctx.tags.resolve(service.tags)
    for name, refs in service.tag_refs.items():
        if not refs:
            logger.warning(f"service {service.name}: no cluster or node carries tag '{name}'")


def resolve_links(ctx: DeployContext, service: Service) -> list[dict]:
    """Turn ``require`` names into ``linked_to_service`` entries.

    Raises:
        DependencyNotFoundError: If a dependency is not declared before
            ``service`` or has not been created yet
    """
    names = [s.name for s in ctx.config.services]
    position = names.index(service.name)
    links = []
    for name in service.require:
        dependency = ctx.config.get_service(name)
        if dependency is None:
            raise DependencyNotFoundError(
                f"service {service.name} requires unknown service {name}"
            )
        if names.index(name) >= position:
            raise DependencyNotFoundError(
                f"service {service.name} requires {name}, which is declared after it",
                f"Move {name} above {service.name} in the services list",
            )
        if dependency.remote is None or not dependency.remote.uuid:
            raise DependencyNotFoundError(
                f"service {service.name} requires {name}, which has no remote service"
            )
        links.append({"to_service": ctx.api.link("service", dependency.remote.uuid), "name": name})
    return links


def create_service(ctx: DeployContext, service: Service) -> None:
    if service.remote is not None:
        logger.info(f"service {service.name} is already created, skipping")
        return

    logger.info(f"creating service: {service.name}")
    payload = service.to_payload(resolve_links(ctx, service))
    body = ctx.api.create("/service/", payload, f"creating {service.name} service")
    service.remote = RemoteRecord.model_validate(body)

    service.remote = wait_for_state(
        ctx, f"/service/{service.remote.uuid}/", f"service {service.name}", SETTLED_STATES
    )


def start_service(ctx: DeployContext, service: Service) -> None:
    state = service.remote.state
    if state not in STARTABLE_STATES:
        logger.debug(f"service {service.name} is {state}, not starting")
        return

    uuid = service.remote.uuid
    logger.info(f"starting service: {service.name}({uuid})")
    ctx.api.action(f"/service/{uuid}/start/", f"starting {service.name} service")
    service.started = True

    service.remote = wait_for_state(
        ctx,
        f"/service/{uuid}/",
        f"service {service.name}",
        {"Running"},
        fail={"Stopped"},
        pending={state},
    )


def update_service(ctx: DeployContext, service: Service) -> None:
    uuid = service.remote.uuid
    logger.info(f"updating service: {service.name}({uuid})")
    body = ctx.api.update(f"/service/{uuid}/", service.tags_payload(), f"updating {service.name} service")
    service.remote = RemoteRecord.model_validate(body)


def redeploy_service(ctx: DeployContext, service: Service) -> None:
    """Roll a running service onto the image pushed in this run.

    A service started in this run already runs the new image.
    """
    if service.remote.state != "Running" or service.started:
        return
    if not (service.image_pushed or ctx.force_redeploy):
        logger.debug(f"service {service.name}: no new image, not redeploying")
        return

    uuid = service.remote.uuid
    logger.info(f"redeploying service: {service.name}({uuid})")
    ctx.api.action(f"/service/{uuid}/redeploy/", f"redeploying {service.name} service")
