"""Unit tests for the kopf startup hooks and entry point."""

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import kopf
import pytest

from chia_operator import operator


class TestStartup:
    async def test_reconcilers_share_one_store(self, monkeypatch):
        monkeypatch.setattr(operator, "get_kubernetes_client", MagicMock)
        monkeypatch.setattr(
            operator, "start_metrics_server", AsyncMock(return_value=None)
        )
        configure_executor = MagicMock()
        monkeypatch.setattr(operator, "configure_executor", configure_executor)
        memo = kopf.Memo()
        settings = kopf.OperatorSettings()

        await operator.startup_handler(settings=settings, memo=memo)

        assert sorted(memo.reconcilers) == [
            "ChiaCA",
            "ChiaFarmer",
            "ChiaSeeder",
            "ChiaWallet",
        ]
        assert all(r.store is memo.store for r in memo.reconcilers.values())
        assert settings.peering.name == "chia-operator"
        assert 0 <= settings.peering.priority <= 32767
        configure_executor.assert_called_once_with(operator.operator_settings.max_workers)
        assert memo.metrics_server is None

    async def test_api_calls_run_in_the_sized_pool(self):
        loop = asyncio.get_running_loop()
        operator.configure_executor(2)
        try:
            thread = await asyncio.to_thread(threading.current_thread)
        finally:
            await loop.shutdown_default_executor()

        assert thread.name.startswith(operator.API_THREAD_PREFIX)

    async def test_metrics_server_failure_is_not_fatal(self):
        with patch.object(
            operator.MetricsServer, "start", AsyncMock(side_effect=OSError("in use"))
        ):
            assert await operator.start_metrics_server() is None

    async def test_probe_lists_kinds(self):
        memo = kopf.Memo(reconcilers={"ChiaWallet": object(), "ChiaCA": object()})

        assert await operator.reconcilers_probe(memo=memo) == ["ChiaCA", "ChiaWallet"]


class TestMain:
    @pytest.mark.parametrize(
        ("namespaces", "scope"),
        [
            (["chia"], {"namespaces": ["chia"]}),
            (None, {"clusterwide": True}),
        ],
    )
    def test_scope(self, monkeypatch, namespaces, scope):
        run = MagicMock()
        monkeypatch.setattr(operator.kopf, "run", run)
        monkeypatch.setattr(operator, "configure_logging", lambda: None)
        monkeypatch.setattr(operator, "get_watched_namespaces", lambda: namespaces)

        operator.main()

        run.assert_called_once_with(liveness_endpoint=operator.LIVENESS_ENDPOINT, **scope)

    def test_failure_exits_non_zero(self, monkeypatch):
        monkeypatch.setattr(operator.kopf, "run", MagicMock(side_effect=RuntimeError))
        monkeypatch.setattr(operator, "configure_logging", lambda: None)

        with pytest.raises(SystemExit) as exc_info:
            operator.main()

        assert exc_info.value.code == 1
