"""Pytest configuration and shared fixtures."""

import itertools
import json
import re
from unittest.mock import Mock

import pytest
from hypothesis import Verbosity, settings

from tutum_deploy.api import ApiClient, Credentials
from tutum_deploy.config import parse_config
from tutum_deploy.context import DeployContext, SettlePolicy

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")

PREFIX = "/api/v1"


class FakeResponse:
    """Just enough of ``requests.Response`` for the API client."""

    def __init__(self, status_code, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else ("" if body is None else json.dumps(body))
        self.content = self.text.encode()

    def json(self):
        return self._body


class FakeTutum:
    """In-memory Tutum API used in place of a ``requests.Session``.

    Every request is recorded in ``calls`` as ``(method, path, payload, params)``.
    Services put into ``Starting`` report ``Running`` on their next GET.
    """

    def __init__(self):
        self.calls = []
        self.last_headers = None
        self.clusters = {}
        self.nodes = {}
        self.services = {}
        self.tags = {}
        self.failures = {}
        self.regions = [
            {
                "name": "ams3",
                "resource_uri": f"{PREFIX}/region/digitalocean/ams3/",
                "node_types": [
                    f"{PREFIX}/nodetype/digitalocean/1gb/",
                    f"{PREFIX}/nodetype/digitalocean/2gb/",
                ],
            }
        ]
        self._ids = itertools.count(1)

    # -- seeding ---------------------------------------------------------

    def _new_uuid(self, kind):
        return f"{kind}-{next(self._ids)}"

    def add_cluster(self, name, state="Deployed", tags=()):
        uuid = self._new_uuid("cluster")
        uri = f"{PREFIX}/nodecluster/{uuid}/"
        self.clusters[uuid] = {"uuid": uuid, "name": name, "state": state, "resource_uri": uri}
        self.tags[uri] = list(tags)
        return self.clusters[uuid]

    def add_node(self, uuid, state="Deployed", tags=()):
        uri = f"{PREFIX}/node/{uuid}/"
        self.nodes[uuid] = {"uuid": uuid, "state": state, "resource_uri": uri}
        self.tags[uri] = list(tags)
        return self.nodes[uuid]

    def add_service(self, name, state="Running"):
        uuid = self._new_uuid("service")
        self.services[uuid] = {
            "uuid": uuid,
            "name": name,
            "state": state,
            "resource_uri": f"{PREFIX}/service/{uuid}/",
        }
        return self.services[uuid]

    def fail(self, method, path, status=500, text="internal error"):
        self.failures[(method, path)] = (status, text)

    # -- inspection ------------------------------------------------------

    def requests(self, method=None):
        return [(m, p) for m, p, _, _ in self.calls if method is None or m == method]

    def mutating(self):
        return [(m, p) for m, p, _, _ in self.calls if m != "GET"]

    def payload(self, method, path):
        return next(body for m, p, body, _ in self.calls if m == method and p == path)

    # -- requests.Session interface -------------------------------------

    def request(self, method, url, headers=None, json=None, params=None, timeout=None):
        path = url.split(PREFIX, 1)[1]
        self.calls.append((method, path, json, params))
        self.last_headers = headers
        if (method, path) in self.failures:
            status, text = self.failures[(method, path)]
            return FakeResponse(status, text=text)
        return self._route(method, path, json or {}, params or {})

    def _route(self, method, path, payload, params):
        if method == "GET" and path == "/nodecluster/":
            return self._listing(self.clusters, params)
        if method == "POST" and path == "/nodecluster/":
            record = self.add_cluster(payload["name"], state="Init")
            record.update({k: v for k, v in payload.items() if k != "tags"})
            self.tags[record["resource_uri"]] = [t["name"] for t in payload.get("tags", [])]
            return FakeResponse(201, record)
        if method == "GET" and path == "/region/":
            return FakeResponse(
                200, {"objects": [r for r in self.regions if r["name"] == params.get("name")]}
            )
        if method == "GET" and path == "/service/":
            return self._listing(self.services, params)
        if method == "POST" and path == "/service/":
            record = self.add_service(payload["name"], state="Init")
            return FakeResponse(201, dict(record))

        match = re.match(r"^/(nodecluster|node|service)/([^/]+)/(?:(\w+)/)?$", path)
        if not match:
            return FakeResponse(404, text="not found")
        kind, uuid, sub = match.groups()
        store = {"nodecluster": self.clusters, "node": self.nodes, "service": self.services}[kind]
        if uuid not in store:
            return FakeResponse(404, text=f"{kind} {uuid} not found")
        record = store[uuid]

        if method == "GET" and sub is None:
            if record["state"] == "Starting":
                record["state"] = "Running"
            return FakeResponse(200, dict(record))
        if method == "GET" and sub == "tags":
            names = self.tags.get(record["resource_uri"], [])
            return FakeResponse(200, {"objects": [{"name": n} for n in names]})
        if method == "PATCH" and sub is None:
            self.tags[record["resource_uri"]] = [t["name"] for t in payload.get("tags", [])]
            return FakeResponse(200, dict(record))
        if method == "POST" and sub == "deploy":
            record["state"] = "Deploying"
            return FakeResponse(202, dict(record))
        if method == "POST" and sub == "start":
            record["state"] = "Starting"
            return FakeResponse(202, dict(record))
        if method == "POST" and sub == "redeploy":
            return FakeResponse(202, dict(record))
        return FakeResponse(405, text="method not allowed")

    def _listing(self, store, params):
        objects = [dict(r) for r in store.values() if r["name"] == params.get("name")]
        return FakeResponse(200, {"objects": objects})


@pytest.fixture
def tutum():
    """A fresh in-memory Tutum API."""
    return FakeTutum()


@pytest.fixture
def api(tutum):
    """API client talking to the fake Tutum."""
    return ApiClient(Credentials(user="deployer", apikey="secret"), session=tutum)


@pytest.fixture
def make_context(api, tmp_path):
    """Build a deploy context from YAML text with polling sleeps mocked out."""

    def factory(text, **options):
        options.setdefault("cwd", tmp_path)
        options.setdefault("settle", SettlePolicy(attempts=3, interval=0.0))
        options.setdefault("sleep", Mock())
        return DeployContext(config=parse_config(text), api=api, **options)

    return factory


@pytest.fixture
def sample_config_text():
    """A deployment with one cluster, one node and two linked services."""
    return """
cluster:
  name: production
  region: ams3
  type: 1gb
  nodes: 2
  tags: [web]
nodes:
  - uuid: node-byo-1
    name: bare-metal
    tags: [db]
services:
  - name: redis
    image: redis:7
    containers: 1
    ports: [6379]
    tags: [db]
  - name: app
    image: registry.example.com/app:latest
    build: ./app
    containers: 2
    ports:
      - inner_port: 8000
        outer_port: 80
        published: true
    env:
      DEBUG: "false"
      WORKERS: 4
    tags: [web]
    require: [redis]
"""
