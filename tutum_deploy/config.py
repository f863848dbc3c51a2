"""Loading of the tutum.yaml deployment configuration.

The file is a template: ``{{NAME}}`` placeholders are replaced in memory with
the value of the ``TUTUM_NAME`` environment variable before the YAML is
parsed. The result is validated and normalized into a ``DeployConfig``.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from tutum_deploy.exceptions import ConfigParseError, ConfigReadError, TemplateError
from tutum_deploy.logging_config import get_logger
from tutum_deploy.models.config import DeployConfig

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = "tutum.yaml"
ENV_PREFIX = "TUTUM_"
PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def read_template(path: str | Path) -> str:
    """Read the raw configuration template.

    Raises:
        ConfigReadError: If the file is missing or unreadable
    """
    path = Path(path)
    logger.debug(f"Reading configuration file: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigReadError(
            f"tutum conf read error: {path} not found",
            f"Expected location: {path.absolute()}",
        )
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigReadError(f"tutum conf read error: {e}")


def substitute(template: str, environ: Mapping[str, str]) -> str:
    """Replace every ``{{NAME}}`` with ``environ["TUTUM_NAME"]``.

    Raises:
        TemplateError: If a referenced variable is unset or empty
    """
    names = sorted(set(PLACEHOLDER_PATTERN.findall(template)))
    missing = [name for name in names if not environ.get(ENV_PREFIX + name)]
    if missing:
        variables = ", ".join(ENV_PREFIX + name for name in missing)
        raise TemplateError(
            f"{variables} setting is undefined",
            "Export the variable(s) before running, e.g. export "
            f"{ENV_PREFIX}{missing[0]}=...",
        )

    for name in names:
        logger.debug(f"Substituting {{{{{name}}}}} from {ENV_PREFIX}{name}")

    return PLACEHOLDER_PATTERN.sub(lambda m: environ[ENV_PREFIX + m.group(1)], template)


def parse_config(text: str) -> DeployConfig:
    """Parse and normalize a substituted configuration document.

    Raises:
        ConfigParseError: On invalid YAML, missing sections or invalid fields
    """
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"tutum conf parse error: {e}")

    if not isinstance(doc, dict):
        raise ConfigParseError("tutum conf parse error: document must be a mapping")

    # Legacy single-cluster form
    if "cluster" in doc:
        if "clusters" in doc:
            raise ConfigParseError(
                "tutum conf parse error: use either 'cluster' or 'clusters', not both"
            )
        cluster = doc.pop("cluster")
        doc["clusters"] = [cluster] if cluster else None

    if "clusters" not in doc:
        raise ConfigParseError("tutum conf parse error: cluster info required")
    if "services" not in doc:
        raise ConfigParseError("tutum conf parse error: services info required")

    try:
        config = DeployConfig.model_validate(doc)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            field = ".".join(str(x) for x in error["loc"])
            problems.append(f"  - {field}: {error['msg']}")
        raise ConfigParseError("tutum conf parse error: invalid configuration", "\n".join(problems))

    logger.debug(
        f"Loaded {len(config.clusters)} cluster(s), {len(config.nodes)} node(s), "
        f"{len(config.services)} service(s)"
    )
    return config


def load_config(path: str | Path, environ: Mapping[str, str] | None = None) -> DeployConfig:
    """Read, substitute and parse the configuration file.

    Args:
        path: Path to tutum.yaml
        environ: Environment to substitute from, defaults to ``os.environ``

    Returns:
        The normalized configuration tree
    """
    if environ is None:
        environ = os.environ
    return parse_config(substitute(read_template(path), environ))
