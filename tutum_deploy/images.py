"""Docker image build and push for services with a build path."""

import subprocess

from tutum_deploy.context import DeployContext
from tutum_deploy.exceptions import ImageBuildError
from tutum_deploy.logging_config import get_logger
from tutum_deploy.models.service import Service

logger = get_logger(__name__)


def should_build(ctx: DeployContext, service: Service) -> bool:
    """Whether ``service`` gets its image built and pushed in this run."""
    return bool(service.build) and ctx.build_images and ctx.config.build_enabled


def run_streamed(command: list[str], action: str) -> None:
    """Run ``command``, forwarding each output line to the log.

    Raises:
        ImageBuildError: If the command is missing or exits non-zero
    """
    logger.debug(f"Running: {' '.join(command)}")
    try:
        proc = subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError:
        raise ImageBuildError(
            f"{command[0]} is not installed or not in PATH",
            "Install Docker from https://docs.docker.com/get-docker/",
        )

    with proc:
        for line in proc.stdout:
            line = line.rstrip()
            if line:
                logger.info(line)
        returncode = proc.wait()

    if returncode != 0:
        raise ImageBuildError(f"{action} failed with exit code {returncode}")


def build_image(ctx: DeployContext, service: Service) -> None:
    if not should_build(ctx, service):
        return
    context_dir = ctx.cwd / service.build
    logger.info(f"building {service.image}")
    run_streamed(["docker", "build", "-t", service.image, str(context_dir)], f"building {service.image}")


def push_image(ctx: DeployContext, service: Service) -> None:
    if not should_build(ctx, service):
        return
    logger.info(f"pushing {service.image}")
    run_streamed(["docker", "push", service.image], f"pushing {service.image}")
    service.image_pushed = True
