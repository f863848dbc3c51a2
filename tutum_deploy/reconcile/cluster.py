"""Cluster steps: fetch, resolve region, create, fetch tags, deploy."""

import re

from tutum_deploy.context import DeployContext
from tutum_deploy.exceptions import RemoteStateError, ResolutionError
from tutum_deploy.logging_config import get_logger
from tutum_deploy.models.cluster import Cluster
from tutum_deploy.models.remote import RemoteRecord

logger = get_logger(__name__)

# States in which a cluster needs no deploy action
DEPLOYED_STATES = {"Deploying", "Deployed", "Partly deployed", "Scaling", "Empty cluster"}


def fetch_cluster(ctx: DeployContext, cluster: Cluster) -> None:
    """Look the cluster up by name and attach its remote record.

    Raises:
        RemoteStateError: If the cluster is terminating or terminated
    """
    logger.info(f"getting cluster: {cluster.name}")
    objects = ctx.api.fetch_objects(
        "/nodecluster/", f"getting cluster {cluster.name}", params={"name": cluster.name}
    )
    if not objects:
        logger.info(f"cluster {cluster.name} not found")
        cluster.remote = None
        return

    cluster.remote = RemoteRecord.model_validate(objects[0])
    state = cluster.remote.state
    logger.info(f"cluster {cluster.name} state: {state}")
    if cluster.remote.is_terminal:
        raise RemoteStateError(f"error getting cluster {cluster.name}: cluster is {state}")


def resolve_region(ctx: DeployContext, cluster: Cluster) -> None:
    """Replace the region name with its resource URI and pick the node type.

    Raises:
        ResolutionError: If the region or node type does not exist
    """
    if cluster.remote is not None or cluster.region_resolved:
        return

    logger.info(f"getting region: {cluster.region}")
    objects = ctx.api.fetch_objects(
        "/region/", f"getting region {cluster.region}", params={"name": cluster.region}
    )
    if not objects:
        raise ResolutionError(f"region {cluster.region} not found")
    region = objects[0]

    if not cluster.node_type:
        pattern = re.compile("/" + re.escape(cluster.type) + "/$")
        node_type = next((t for t in region.get("node_types", []) if pattern.search(t)), None)
        if node_type is None:
            raise ResolutionError(
                f"node type {cluster.type} not available in region {cluster.region}",
                f"Available: {', '.join(region.get('node_types', [])) or 'none'}",
            )
        cluster.node_type = node_type

    cluster.region = region["resource_uri"]
    logger.debug(f"cluster {cluster.name}: region={cluster.region} node_type={cluster.node_type}")


def create_cluster(ctx: DeployContext, cluster: Cluster) -> None:
    if cluster.remote is not None:
        logger.info(f"{cluster.name} cluster already created, skipping")
        return

    logger.info(f"creating cluster: {cluster.name}")
    body = ctx.api.create("/nodecluster/", cluster.to_payload(), f"creating {cluster.name} cluster")
    cluster.remote = RemoteRecord.model_validate(body)


def fetch_cluster_tags(ctx: DeployContext, cluster: Cluster) -> None:
    """Merge the cluster's tags into the tag index."""
    if cluster.remote is None:
        return
    uuid = cluster.remote.uuid
    tags = ctx.api.fetch_objects(
        f"/nodecluster/{uuid}/tags/", f"getting tags of {cluster.name} cluster"
    )
    resource_uri = cluster.remote.resource_uri or ctx.api.link("nodecluster", uuid)
    ctx.tags.merge(tags, resource_uri)
    logger.debug(f"cluster {cluster.name} tags: {[t.get('name') for t in tags]}")


def deploy_cluster(ctx: DeployContext, cluster: Cluster) -> None:
    if cluster.remote is None:
        return
    state = cluster.remote.state
    if state != "Init":
        if state in DEPLOYED_STATES:
            logger.info(f"{cluster.name} cluster is in the {state} state, skipping")
        else:
            logger.warning(f"{cluster.name} cluster is in unexpected state {state}, skipping deploy")
        return

    logger.info(f"deploying cluster: {cluster.name}")
    ctx.api.action(f"/nodecluster/{cluster.remote.uuid}/deploy/", f"deploying {cluster.name} cluster")
