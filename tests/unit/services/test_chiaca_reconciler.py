"""
Unit tests for the ChiaCA reconciler.

The CA Secret is created asynchronously by the generator Job; these tests
stand in for the Job by adding the Secret to the store at chosen moments.
"""

import pytest

from chia_operator.services import ChiaCAReconciler
from chia_operator.settings import Settings
from chia_operator.utils.resources import ReconcileOutcome
from tests.fixtures.chia_resources import CA_SAMPLE, sample

CA_SECRET = {
    "apiVersion": "v1",
    "kind": "Secret",
    "metadata": {"name": "chiaca-secret", "namespace": "default"},
}


def settings(**overrides) -> Settings:
    values = {
        "ca_secret_wait_attempts": 3,
        "ca_secret_wait_interval_seconds": 5.0,
        "requeue_delay_seconds": 30.0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def ca_store(store):
    store.add_custom_resource(sample(CA_SAMPLE))
    return store


def secret_checks(store) -> int:
    return sum(
        1 for verb, kind, _, _ in store.calls if verb == "get" and kind == "Secret"
    )


class TestChiaCAReconciler:
    @pytest.mark.asyncio
    async def test_existing_secret_skips_job_and_is_ready(self, ca_store, no_sleep):
        ca_store.add("Secret", CA_SECRET)
        reconciler = ChiaCAReconciler(ca_store, settings(), sleep=no_sleep)

        result = await reconciler.reconcile("default", "chiaca-sample")

        assert list(result.outcomes) == ["service-account", "role", "role-binding"]
        assert "Job" not in ca_store.kinds("create")
        assert "Job" not in ca_store.kinds("get")
        assert result.ready is True
        assert result.requeue_after is None
        assert no_sleep.delays == []
        assert ca_store.status_of("ChiaCA", "default", "chiaca-sample")["ready"] is True

    @pytest.mark.asyncio
    async def test_secret_created_during_wait(self, ca_store):
        checks = 0

        async def job_finishes_after_first_sleep(seconds: float) -> None:
            nonlocal checks
            checks += 1
            ca_store.add("Secret", CA_SECRET)

        reconciler = ChiaCAReconciler(
            ca_store, settings(), sleep=job_finishes_after_first_sleep
        )

        result = await reconciler.reconcile("default", "chiaca-sample")

        assert result.outcomes == {
            "service-account": ReconcileOutcome.CREATED,
            "role": ReconcileOutcome.CREATED,
            "role-binding": ReconcileOutcome.CREATED,
            "job": ReconcileOutcome.CREATED,
        }
        assert ca_store.kinds("create") == [
            "ServiceAccount",
            "Role",
            "RoleBinding",
            "Job",
        ]
        # One check before the reconcile, two during the wait
        assert secret_checks(ca_store) == 3
        assert checks == 1
        assert result.ready is True
        assert result.requeue_after is None

    @pytest.mark.asyncio
    async def test_wait_exhaustion_requeues_not_ready(self, ca_store, no_sleep):
        reconciler = ChiaCAReconciler(ca_store, settings(), sleep=no_sleep)

        result = await reconciler.reconcile("default", "chiaca-sample")

        assert result.ready is False
        assert result.requeue_after == 30.0
        assert secret_checks(ca_store) == 1 + 3
        assert no_sleep.delays == [5.0, 5.0]

        status = ca_store.status_of("ChiaCA", "default", "chiaca-sample")
        assert status["ready"] is False
        (condition,) = status["conditions"]
        assert condition["status"] == "False"
        assert condition["reason"] == "WaitingForCASecret"

    @pytest.mark.asyncio
    async def test_requeued_reconcile_becomes_ready_once_secret_exists(
        self, ca_store, no_sleep
    ):
        reconciler = ChiaCAReconciler(ca_store, settings(), sleep=no_sleep)
        await reconciler.reconcile("default", "chiaca-sample")
        ca_store.add("Secret", CA_SECRET)
        ca_store.calls.clear()

        result = await reconciler.reconcile("default", "chiaca-sample")

        assert result.ready is True
        assert set(result.outcomes.values()) == {ReconcileOutcome.UNCHANGED}
        assert ca_store.kinds("create") == []
        assert ca_store.kinds("patch_status") == ["ChiaCA"]
        status = ca_store.status_of("ChiaCA", "default", "chiaca-sample")
        assert status["conditions"][0]["status"] == "True"

    @pytest.mark.asyncio
    async def test_ready_ca_reconciles_without_writes(self, ca_store, no_sleep):
        ca_store.add("Secret", CA_SECRET)
        reconciler = ChiaCAReconciler(ca_store, settings(), sleep=no_sleep)
        await reconciler.reconcile("default", "chiaca-sample")
        ca_store.calls.clear()

        await reconciler.reconcile("default", "chiaca-sample")

        assert ca_store.writes() == []
