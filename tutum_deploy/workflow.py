"""Step sequences for the up, ps and build commands."""

from tutum_deploy import images
from tutum_deploy.batch import Batch
from tutum_deploy.context import DeployContext
from tutum_deploy.logging_config import get_logger
from tutum_deploy.reconcile import cluster as cluster_steps
from tutum_deploy.reconcile import node as node_steps
from tutum_deploy.reconcile import service as service_steps

logger = get_logger(__name__)


def deploy_batch(ctx: DeployContext) -> Batch:
    """Clusters, then nodes, then services, each through its full step list."""
    batch = Batch("deployment")

    for cluster in ctx.config.clusters:
        batch.push(f"get cluster {cluster.name}", cluster_steps.fetch_cluster, ctx, cluster)
        batch.push(f"resolve region of {cluster.name}", cluster_steps.resolve_region, ctx, cluster)
        batch.push(f"create cluster {cluster.name}", cluster_steps.create_cluster, ctx, cluster)
        batch.push(f"get tags of cluster {cluster.name}", cluster_steps.fetch_cluster_tags, ctx, cluster)
        batch.push(f"deploy cluster {cluster.name}", cluster_steps.deploy_cluster, ctx, cluster)

    for node in ctx.config.nodes:
        batch.push(f"get node {node.label}", node_steps.fetch_node, ctx, node)
        batch.push(f"create node {node.label}", node_steps.create_node, ctx, node)
        batch.push(f"get tags of node {node.label}", node_steps.fetch_node_tags, ctx, node)
        batch.push(f"update tags of node {node.label}", node_steps.update_node_tags, ctx, node)
        batch.push(f"deploy node {node.label}", node_steps.deploy_node, ctx, node)

    for service in ctx.config.services:
        batch.push(f"build image {service.image}", images.build_image, ctx, service)
        batch.push(f"push image {service.image}", images.push_image, ctx, service)
        batch.push(f"get service {service.name}", service_steps.fetch_service, ctx, service)
        batch.push(f"create service {service.name}", service_steps.create_service, ctx, service)
        batch.push(f"start service {service.name}", service_steps.start_service, ctx, service)
        batch.push(f"update service {service.name}", service_steps.update_service, ctx, service)
        batch.push(f"redeploy service {service.name}", service_steps.redeploy_service, ctx, service)

    return batch


def status_batch(ctx: DeployContext) -> Batch:
    """Fetch-only steps; nothing is changed remotely."""
    batch = Batch("status check")
    for cluster in ctx.config.clusters:
        batch.push(f"get cluster {cluster.name}", cluster_steps.fetch_cluster, ctx, cluster)
    for node in ctx.config.nodes:
        batch.push(f"get node {node.label}", node_steps.fetch_node, ctx, node)
    for service in ctx.config.services:
        batch.push(f"get service {service.name}", service_steps.fetch_service, ctx, service)
    return batch


def build_batch(ctx: DeployContext) -> Batch:
    batch = Batch("image build")
    for service in ctx.config.services:
        batch.push(f"build image {service.image}", images.build_image, ctx, service)
        batch.push(f"push image {service.image}", images.push_image, ctx, service)
    return batch


def deploy(ctx: DeployContext) -> int:
    """Bring the remote system up to date with the configuration."""
    steps = deploy_batch(ctx).run()
    logger.info("deployment successful")
    return steps


def status(ctx: DeployContext) -> list[tuple[str, str, str | None, str | None]]:
    """Fetch every configured entity.

    Returns:
        ``(kind, name, state, uuid)`` rows; state and uuid are None when
        the entity does not exist remotely
    """
    status_batch(ctx).run()
    rows = []
    for cluster in ctx.config.clusters:
        rows.append(_row("cluster", cluster.name, cluster.remote))
    for node in ctx.config.nodes:
        rows.append(_row("node", node.label, node.remote))
    for service in ctx.config.services:
        rows.append(_row("service", service.name, service.remote))
    return rows


def build(ctx: DeployContext) -> int:
    """Build and push every service image with a build path."""
    return build_batch(ctx).run()


def _row(kind, name, remote):
    if remote is None:
        return (kind, name, None, None)
    return (kind, name, remote.state, remote.uuid)
