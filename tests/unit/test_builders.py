"""
Unit tests for the desired-state builders.

Builders are pure, so these tests only inspect the produced manifests.
"""

from chia_operator.builders import chiaca, chiafarmer, chiaseeder, chiawallet
from chia_operator.models import ChiaCA, ChiaFarmer, ChiaSeeder, ChiaWallet
from tests.fixtures.chia_resources import (
    CA_SAMPLE,
    FARMER_SAMPLE,
    SEEDER_SAMPLE,
    WALLET_SAMPLE,
    sample,
)


def env_of(container: dict) -> dict[str, str]:
    return {var["name"]: var["value"] for var in container["env"]}


def by_key(children) -> dict:
    return {child.key: child for child in children}


class TestWalletBuilder:
    def setup_method(self):
        self.wallet = ChiaWallet.model_validate(sample(WALLET_SAMPLE))
        self.children = by_key(chiawallet.assemble(self.wallet))

    def test_one_service_and_one_deployment(self):
        assert [(c.key, c.kind) for c in self.children.values()] == [
            ("service", "Service"),
            ("deployment", "Deployment"),
        ]
        assert self.children["deployment"].depends_on == ("service",)

    def test_every_child_is_owned_by_the_wallet(self):
        for child in self.children.values():
            assert child.owner_references == [
                {
                    "apiVersion": "k8s.chia.net/v1",
                    "kind": "ChiaWallet",
                    "name": "wallet-sample",
                    "uid": "7d1b2a44-0000-4000-8000-000000000001",
                    "controller": True,
                    "blockOwnerDeletion": True,
                }
            ]

    def test_recommended_labels(self):
        labels = self.children["service"].manifest["metadata"]["labels"]

        assert labels == {
            "app.kubernetes.io/name": "chiawallet",
            "app.kubernetes.io/instance": "wallet-sample",
            "app.kubernetes.io/managed-by": "chia-operator",
            "app.kubernetes.io/part-of": "chia",
            "app.kubernetes.io/component": "wallet",
        }

    def test_service_ports(self):
        spec = self.children["service"].manifest["spec"]

        assert spec["type"] == "ClusterIP"
        assert [(p["name"], p["port"]) for p in spec["ports"]] == [
            ("daemon", 55400),
            ("peers", 8449),
            ("rpc", 9256),
        ]
        assert spec["selector"] == {
            "app.kubernetes.io/name": "chiawallet",
            "app.kubernetes.io/instance": "wallet-sample",
        }

    def test_container_environment(self):
        pod = self.children["deployment"].manifest["spec"]["template"]["spec"]
        (container,) = pod["containers"]

        assert container["image"] == "ghcr.io/chia-network/chia:latest"
        assert env_of(container) == {
            "service": "wallet",
            "CHIA_ROOT": "/chia-data",
            "ca": "/chia-ca",
            "keys": "/key/key.txt",
            "testnet": "true",
            "TZ": "UTC",
            "log_level": "INFO",
            "full_node_peer": "node.default.svc.cluster.local:58444",
        }

    def test_volumes(self):
        pod = self.children["deployment"].manifest["spec"]["template"]["spec"]
        volumes = {v["name"]: v for v in pod["volumes"]}
        mounts = {
            m["name"]: m["mountPath"] for m in pod["containers"][0]["volumeMounts"]
        }

        assert volumes["secret-ca"]["secret"] == {"secretName": "chiaca-secret"}
        assert volumes["key"]["secret"] == {"secretName": "chiakey-secret"}
        assert volumes["chiaroot"]["emptyDir"] == {}
        assert mounts == {"secret-ca": "/chia-ca", "key": "/key", "chiaroot": "/chia-data"}

    def test_assembly_is_deterministic(self):
        again = by_key(chiawallet.assemble(self.wallet))

        assert {k: c.manifest for k, c in again.items()} == {
            k: c.manifest for k, c in self.children.items()
        }


class TestFarmerBuilder:
    def setup_method(self):
        self.farmer = ChiaFarmer.model_validate(sample(FARMER_SAMPLE))
        self.children = by_key(chiafarmer.assemble(self.farmer))

    def test_exporter_adds_metrics_service_and_sidecar(self):
        assert list(self.children) == ["service", "metrics-service", "deployment"]
        assert self.children["deployment"].depends_on == ("service", "metrics-service")

        metrics = self.children["metrics-service"].manifest
        assert metrics["metadata"]["name"] == "farmer-sample-metrics"
        assert metrics["metadata"]["labels"]["network"] == "mainnet"
        assert metrics["spec"]["ports"] == [
            {"name": "metrics", "port": 9914, "targetPort": 9914, "protocol": "TCP"}
        ]

        containers = self.children["deployment"].manifest["spec"]["template"]["spec"][
            "containers"
        ]
        assert [c["name"] for c in containers] == ["chia", "chia-exporter"]
        assert containers[1]["ports"][0]["containerPort"] == 9914

    def test_farmer_environment(self):
        container = self.children["deployment"].manifest["spec"]["template"]["spec"][
            "containers"
        ][0]
        env = env_of(container)

        assert env["service"] == "farmer-only"
        assert env["full_node_peer"] == "node.chia.svc.cluster.local:8444"
        assert "testnet" not in env
        assert "TZ" not in env

    def test_additional_metadata_is_propagated(self):
        for child in self.children.values():
            metadata = child.manifest["metadata"]
            assert metadata["labels"]["team"] == "farming"
            assert metadata["annotations"] == {"example.com/owner": "farming"}

        template = self.children["deployment"].manifest["spec"]["template"]["metadata"]
        assert template["labels"]["team"] == "farming"
        assert template["annotations"] == {"example.com/owner": "farming"}

    def test_user_labels_cannot_break_selectors(self):
        raw = sample(FARMER_SAMPLE)
        raw["spec"]["additionalMetadata"]["labels"]["app.kubernetes.io/instance"] = "x"
        children = by_key(chiafarmer.assemble(ChiaFarmer.model_validate(raw)))
        deployment = children["deployment"].manifest

        assert deployment["metadata"]["labels"]["app.kubernetes.io/instance"] == "x"
        selector = deployment["spec"]["selector"]["matchLabels"]
        assert selector["app.kubernetes.io/instance"] == "farmer-sample"
        template_labels = deployment["spec"]["template"]["metadata"]["labels"]
        assert template_labels["app.kubernetes.io/instance"] == "farmer-sample"


class TestSeederBuilder:
    def setup_method(self):
        seeder = ChiaSeeder.model_validate(sample(SEEDER_SAMPLE))
        self.children = by_key(chiaseeder.assemble(seeder))

    def test_service_exposes_dns_and_testnet_peer_port(self):
        spec = self.children["service"].manifest["spec"]
        ports = {(p["name"], p["port"], p["protocol"]) for p in spec["ports"]}

        assert spec["type"] == "LoadBalancer"
        assert ("dns", 53, "UDP") in ports
        assert ("dns-tcp", 53, "TCP") in ports
        assert ("peers", 58444, "TCP") in ports

    def test_seeder_environment_and_no_keys(self):
        pod = self.children["deployment"].manifest["spec"]["template"]["spec"]
        env = env_of(pod["containers"][0])

        assert env["service"] == "seeder"
        assert env["keys"] == "none"
        assert env["seeder_domain_name"] == "seeder.example.com."
        assert env["seeder_nameserver"] == "example.com."
        assert env["seeder_soa_rname"] == "admin.example.com."
        assert env["seeder_bootstrap_peers"] == "node.default.svc.cluster.local"
        assert env["seeder_minimum_height"] == "240000"
        assert env["seeder_ttl"] == "900"
        assert "key" not in {v["name"] for v in pod["volumes"]}


class TestCABuilder:
    def setup_method(self):
        self.ca = ChiaCA.model_validate(sample(CA_SAMPLE))
        self.children = by_key(chiaca.assemble(self.ca))

    def test_children_and_names(self):
        assert [(c.key, c.kind, c.name) for c in self.children.values()] == [
            ("service-account", "ServiceAccount", "chiaca-sample-chiaca-generator"),
            ("role", "Role", "chiaca-sample-chiaca-generator"),
            ("role-binding", "RoleBinding", "chiaca-sample-chiaca-generator"),
            ("job", "Job", "chiaca-sample-chiaca-generator"),
        ]

    def test_role_binding_targets_service_account(self):
        binding = self.children["role-binding"].manifest

        assert binding["roleRef"] == {
            "apiGroup": "rbac.authorization.k8s.io",
            "kind": "Role",
            "name": "chiaca-sample-chiaca-generator",
        }
        assert binding["subjects"] == [
            {
                "kind": "ServiceAccount",
                "name": "chiaca-sample-chiaca-generator",
                "namespace": "default",
            }
        ]

    def test_role_allows_creating_secrets(self):
        (rule,) = self.children["role"].manifest["rules"]

        assert rule["resources"] == ["secrets"]
        assert "create" in rule["verbs"]

    def test_job_runs_generator(self):
        pod = self.children["job"].manifest["spec"]["template"]["spec"]
        (container,) = pod["containers"]

        assert pod["serviceAccountName"] == "chiaca-sample-chiaca-generator"
        assert container["image"] == "ghcr.io/chia-network/chia-operator/ca-gen:latest"
        assert env_of(container) == {"NAMESPACE": "default", "SECRET_NAME": "chiaca-secret"}

    def test_every_child_is_owned_by_the_ca(self):
        for child in self.children.values():
            (owner,) = child.owner_references
            assert owner["kind"] == "ChiaCA"
            assert owner["uid"] == "7d1b2a44-0000-4000-8000-000000000004"
            assert owner["controller"] is True
