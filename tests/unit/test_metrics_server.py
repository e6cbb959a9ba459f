"""Tests for the metrics HTTP application and server lifecycle."""

import pytest
from aiohttp.test_utils import TestClient, TestServer
from prometheus_client.parser import text_string_to_metric_families

from chia_operator.observability.metrics import (
    MetricsServer,
    create_metrics_app,
    metrics_collector,
)


@pytest.fixture
async def client():
    async with TestClient(TestServer(create_metrics_app())) as cli:
        yield cli


async def test_metrics_include_child_outcomes(client):
    metrics_collector.record_child_outcome("ChiaSeeder", "Service", "Updated")

    resp = await client.get("/metrics")

    assert resp.status == 200
    assert resp.content_type == "text/plain"
    samples = {
        (sample.name, tuple(sorted(sample.labels.items()))): sample.value
        for family in text_string_to_metric_families(await resp.text())
        for sample in family.samples
    }
    labels = (
        ("child_kind", "Service"),
        ("outcome", "Updated"),
        ("resource_type", "ChiaSeeder"),
    )
    assert samples[("chia_operator_child_outcomes_total", labels)] >= 1


async def test_healthz(client):
    resp = await client.get("/healthz")

    assert resp.status == 200
    assert await resp.text() == "ok"


async def test_unknown_path_is_404(client):
    resp = await client.get("/ready")

    assert resp.status == 404


async def test_server_start_and_stop():
    server = MetricsServer(port=0, host="127.0.0.1")

    async with server:
        assert server.running

    assert not server.running
    assert server.runner is None
