"""Node steps. Nodes are linked to Tutum out-of-band, never created here."""

from tutum_deploy.context import DeployContext
from tutum_deploy.exceptions import RemoteStateError
from tutum_deploy.logging_config import get_logger
from tutum_deploy.models.node import Node
from tutum_deploy.models.remote import RemoteRecord

logger = get_logger(__name__)


def fetch_node(ctx: DeployContext, node: Node) -> None:
    logger.info(f"getting node: {node.label}")
    body = ctx.api.fetch(f"/node/{node.uuid}/", f"getting node {node.label}")
    node.remote = RemoteRecord.model_validate(body)
    logger.info(f"node {node.label} state: {node.remote.state}")
    if node.remote.is_terminal:
        raise RemoteStateError(f"error getting node {node.label}: node is {node.remote.state}")


def create_node(ctx: DeployContext, node: Node) -> None:
    # Linking a node is done from the host itself
    logger.debug(f"node {node.label} is linked out-of-band, nothing to create")


def fetch_node_tags(ctx: DeployContext, node: Node) -> None:
    tags = ctx.api.fetch_objects(f"/node/{node.uuid}/tags/", f"getting tags of node {node.label}")
    ctx.tags.merge(tags, _resource_uri(ctx, node))


def update_node_tags(ctx: DeployContext, node: Node) -> None:
    logger.info(f"updating node tags: {node.label} {node.tags}")
    body = ctx.api.update(f"/node/{node.uuid}/", node.tags_payload(), f"updating node {node.label}")
    node.remote = RemoteRecord.model_validate(body)
    for name in node.tags:
        ctx.tags.add(name, _resource_uri(ctx, node))


def deploy_node(ctx: DeployContext, node: Node) -> None:
    state = node.remote.state if node.remote else None
    if state != "Init":
        logger.info(f"node {node.label} is in the {state} state, skipping")
        return

    logger.info(f"deploying node: {node.label}")
    ctx.api.action(f"/node/{node.uuid}/deploy/", f"deploying node {node.label}")


def _resource_uri(ctx: DeployContext, node: Node) -> str:
    if node.remote and node.remote.resource_uri:
        return node.remote.resource_uri
    return ctx.api.link("node", node.uuid)
