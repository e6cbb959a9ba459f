"""
Desired state of a ChiaCA.

The CA generator Job runs with its own ServiceAccount, bound to a Role that
may create the CA Secret in the resource's namespace.
"""

from kubernetes import client

from chia_operator.constants import CA_GENERATOR_SUFFIX
from chia_operator.models import ChiaCA
from chia_operator.utils.resources import ChildDescriptor

from .common import describe, object_meta

COMPONENT = "ca-generator"

SERVICE_ACCOUNT_KEY = "service-account"
ROLE_KEY = "role"
ROLE_BINDING_KEY = "role-binding"
JOB_KEY = "job"


def generator_name(ca: ChiaCA) -> str:
    return f"{ca.name}{CA_GENERATOR_SUFFIX}"


def service_account(ca: ChiaCA) -> client.V1ServiceAccount:
    return client.V1ServiceAccount(
        api_version="v1",
        kind="ServiceAccount",
        metadata=object_meta(ca, generator_name(ca), COMPONENT),
    )


def role(ca: ChiaCA) -> client.V1Role:
    return client.V1Role(
        api_version="rbac.authorization.k8s.io/v1",
        kind="Role",
        metadata=object_meta(ca, generator_name(ca), COMPONENT),
        rules=[
            client.V1PolicyRule(
                api_groups=[""],
                resources=["secrets"],
                verbs=["get", "create"],
            )
        ],
    )


def role_binding(ca: ChiaCA) -> client.V1RoleBinding:
    name = generator_name(ca)
    return client.V1RoleBinding(
        api_version="rbac.authorization.k8s.io/v1",
        kind="RoleBinding",
        metadata=object_meta(ca, name, COMPONENT),
        role_ref=client.V1RoleRef(
            api_group="rbac.authorization.k8s.io", kind="Role", name=name
        ),
        subjects=[
            client.RbacV1Subject(
                kind="ServiceAccount", name=name, namespace=ca.namespace
            )
        ],
    )


def job(ca: ChiaCA) -> client.V1Job:
    name = generator_name(ca)
    container = client.V1Container(
        name="chiaca-generator",
        image=ca.spec.image,
        image_pull_policy="IfNotPresent",
        env=[
            client.V1EnvVar(name="NAMESPACE", value=ca.namespace),
            client.V1EnvVar(name="SECRET_NAME", value=ca.spec.secret),
        ],
    )

    return client.V1Job(
        api_version="batch/v1",
        kind="Job",
        metadata=object_meta(ca, name, COMPONENT),
        spec=client.V1JobSpec(
            template=client.V1PodTemplateSpec(
                spec=client.V1PodSpec(
                    service_account_name=name,
                    restart_policy="OnFailure",
                    containers=[container],
                    image_pull_secrets=[
                        client.V1LocalObjectReference(name=ref.name)
                        for ref in ca.spec.image_pull_secrets
                    ]
                    or None,
                )
            )
        ),
    )


def assemble(ca: ChiaCA) -> list[ChildDescriptor]:
    """ServiceAccount, Role, RoleBinding and the generator Job, in that order."""
    return [
        describe(SERVICE_ACCOUNT_KEY, service_account(ca)),
        describe(ROLE_KEY, role(ca), depends_on=(SERVICE_ACCOUNT_KEY,)),
        describe(ROLE_BINDING_KEY, role_binding(ca), depends_on=(ROLE_KEY,)),
        describe(JOB_KEY, job(ca), depends_on=(ROLE_BINDING_KEY,)),
    ]
