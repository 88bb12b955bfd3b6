"""Shared test fixtures for ehrbase-seal tests."""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from icecream import ic

from ehrbase_seal.models import KeyMappingEntry, ProvisioningConfig, ScopePolicy
from ehrbase_seal.secrets.registry import KeyMappingRegistry

# Keep debug tracing quiet during tests
ic.disable()


class FakeOracle:
    """Stands in for kubeseal: "encrypts" every data key of the input Secret.

    Records the plaintext file it was given, the file's permission bits and
    the scope of every call.
    """

    def __init__(self, *, drop_keys=(), extra_keys=(), error=None, output=None):
        self.drop_keys = set(drop_keys)
        self.extra_keys = list(extra_keys)
        self.error = error
        self.output = output
        self.calls: list[tuple[Path, ScopePolicy]] = []
        self.modes: list[int] = []
        self.documents: list[dict] = []

    def __call__(self, plaintext_path: Path, scope: ScopePolicy) -> str:
        self.calls.append((plaintext_path, scope))
        self.modes.append(stat.S_IMODE(os.stat(plaintext_path).st_mode))
        if self.error is not None:
            raise self.error
        if self.output is not None:
            return self.output

        document = yaml.safe_load(plaintext_path.read_text())
        self.documents.append(document)
        keys = [key for key in document["data"] if key not in self.drop_keys] + self.extra_keys
        metadata = {"name": document["metadata"]["name"], "namespace": document["metadata"]["namespace"]}
        if scope is ScopePolicy.CLUSTER_WIDE:
            metadata["annotations"] = {"sealedsecrets.bitnami.com/cluster-wide": "true"}

        return yaml.safe_dump(
            {
                "apiVersion": "bitnami.com/v1alpha1",
                "kind": "SealedSecret",
                "metadata": metadata,
                "spec": {
                    "encryptedData": {key: f"AgB{index:04d}sealed" for index, key in enumerate(keys)},
                    "template": {"metadata": dict(metadata), "type": document["type"]},
                },
            }
        )


@pytest.fixture
def fake_oracle():
    """A kubeseal stand-in that seals every key it is given."""
    return FakeOracle()


@pytest.fixture
def oracle_factory():
    """Build FakeOracle instances with custom behaviour."""
    return FakeOracle


@pytest.fixture
def auth_registry():
    """Registry requiring exactly the four auth-users keys."""
    return KeyMappingRegistry(
        [
            KeyMappingEntry("auth.admin-username", "ehrbase-auth-users", "admin-username", default="ehrbase-admin"),
            KeyMappingEntry("auth.admin-password", "ehrbase-auth-users", "admin-password", prompt="Admin password"),
            KeyMappingEntry("auth.username", "ehrbase-auth-users", "username", default="ehrbase-user"),
            KeyMappingEntry("auth.password", "ehrbase-auth-users", "password", prompt="User password"),
        ]
    )


@pytest.fixture
def auth_values():
    """Plaintext values for the auth-users secret."""
    return {
        "admin-username": "ehrbase-admin",
        "admin-password": "p1",
        "username": "ehrbase-user",
        "password": "p2",
    }


@pytest.fixture
def provisioning_config(tmp_path):
    """Namespace-wide config writing into a temporary directory."""
    return ProvisioningConfig(
        namespace="ehrbase",
        scope=ScopePolicy.NAMESPACE_WIDE,
        output_dir=tmp_path / "sealed-secrets",
    )


@pytest.fixture
def mock_kube_contexts():
    """Mock kubernetes config contexts."""
    with patch("kubernetes.config.list_kube_config_contexts") as mock:
        mock.return_value = ([{"name": "test-context"}, {"name": "prod"}], {"name": "test-context"})
        yield mock


@pytest.fixture
def mock_which():
    """Pretend kubeseal is installed."""
    with patch("ehrbase_seal.core.kubeseal.shutil.which") as mock:
        mock.side_effect = lambda name: f"/usr/local/bin/{Path(name).name}"
        yield mock


@pytest.fixture
def sample_secret_yaml():
    """Sample plaintext secret YAML content."""
    return """apiVersion: v1
kind: Secret
metadata:
  name: test-secret
  namespace: default
type: Opaque
data:
  username: dXNlcm5hbWU=
  password: cGFzc3dvcmQ=
"""


@pytest.fixture
def sample_sealed_secret_yaml():
    """Sample sealed secret YAML content for the Redis secret."""
    return """apiVersion: bitnami.com/v1alpha1
kind: SealedSecret
metadata:
  name: ehrbase-redis
  namespace: ehrbase
spec:
  encryptedData:
    redis-password: AgBy8hCi...
  template:
    metadata:
      name: ehrbase-redis
      namespace: ehrbase
    type: Opaque
"""


def sealed_document(name, keys, *, namespace="ehrbase", sections=("encryptedData", "template")):
    """Build a SealedSecret document dict with the given keys and sections."""
    spec = {}
    if "encryptedData" in sections:
        spec["encryptedData"] = {key: "AgBciphertext" for key in keys}
    if "template" in sections:
        spec["template"] = {"metadata": {"name": name, "namespace": namespace}, "type": "Opaque"}
    return {
        "apiVersion": "bitnami.com/v1alpha1",
        "kind": "SealedSecret",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


@pytest.fixture
def make_sealed_document():
    """Factory for SealedSecret documents."""
    return sealed_document
