"""Property-based tests for service shorthand normalization."""

from hypothesis import given
from hypothesis import strategies as st

from tutum_deploy.models.service import Service

env_keys = st.from_regex(r"[A-Z_][A-Z0-9_]{0,15}", fullmatch=True)
env_values = st.one_of(st.text(max_size=20), st.integers(), st.booleans())
ports = st.integers(min_value=1, max_value=65535)


@given(env=st.dictionaries(env_keys, env_values, max_size=10))
def test_env_mapping_expands_in_order(env):
    """The env mapping becomes key/value pairs in declaration order."""
    service = Service.model_validate({"name": "web", "image": "example/web", "env": env})

    assert [e.key for e in service.container_envvars] == list(env)
    assert [e.value for e in service.container_envvars] == [str(v) for v in env.values()]


@given(port_list=st.lists(ports, max_size=5), containers=st.integers(min_value=0, max_value=20))
def test_shorthand_and_canonical_agree(port_list, containers):
    """Shorthand and canonical field names produce the same payload."""
    short = Service.model_validate(
        {"name": "web", "image": "example/web", "ports": port_list, "containers": containers}
    )
    canonical = Service.model_validate(
        {
            "name": "web",
            "image": "example/web",
            "container_ports": [{"inner_port": p} for p in port_list],
            "target_num_containers": containers,
        }
    )

    assert short.to_payload() == canonical.to_payload()
    assert short.target_num_containers == containers


@given(require=st.lists(st.from_regex(r"[a-z]{1,8}", fullmatch=True), max_size=4))
def test_payload_never_carries_build_or_require(require):
    service = Service.model_validate(
        {"name": "web", "image": "example/web", "build": "./web", "require": require}
    )

    payload = service.to_payload()

    assert "build" not in payload
    assert "require" not in payload
    assert "remote" not in payload
