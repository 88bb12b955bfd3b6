"""Data models for ehrbase-seal.

This module provides type-safe data structures for credentials, plaintext
and sealed manifests, registry bindings and validation results.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from ehrbase_seal.exceptions import SecretParsingError

SEALED_SECRET_API_VERSION = "bitnami.com/v1alpha1"
SEALED_SECRET_KIND = "SealedSecret"
SECRET_TYPE_OPAQUE = "Opaque"
DEFAULT_NAMESPACE = "ehrbase"
DEFAULT_OUTPUT_DIR = "sealed-secrets"


class ScopePolicy(str, Enum):
    """Breadth of decryption authority granted to a sealed manifest.

    Inherits from str to allow direct use in command-line arguments.
    """

    NAMESPACE_WIDE = "namespace-wide"
    CLUSTER_WIDE = "cluster-wide"


class CheckStatus(str, Enum):
    """Outcome of a single validation check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class CheckId(str, Enum):
    """Validation checks, in the order they run for each manifest."""

    SCHEMA = "schema"
    SECTIONS = "sections"
    KEYS = "keys"
    REFERENCES = "references"


class FailureKind(str, Enum):
    """Kinds of defects a validation run can report."""

    NOT_A_SEALED_SECRET = "NotASealedSecret"
    MISSING_SECTION = "MissingSection"
    MISSING_KEYS = "MissingKeys"
    UNRESOLVED_REFERENCE = "UnresolvedReference"
    AMBIGUOUS_REFERENCE = "AmbiguousReference"
    UNEXPECTED_KEYS = "UnexpectedKeys"
    UNKNOWN_SECRET = "UnknownSecret"


class CredentialSet:
    """Ordered plaintext values keyed by secret data key.

    Values are held as bytes; ``str`` values are UTF-8 encoded. Keys are
    kept in insertion order and repeats are preserved so the builder can
    reject them. The representation never includes values.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[tuple[str, str | bytes]] = ()) -> None:
        self._entries: list[tuple[str, bytes]] = [
            (key, value.encode() if isinstance(value, str) else bytes(value)) for key, value in entries
        ]

    @classmethod
    def from_mapping(cls, values: Mapping[str, str | bytes]) -> "CredentialSet":
        """Create a credential set from a mapping, preserving its order."""
        return cls(values.items())

    def keys(self) -> list[str]:
        """Return the keys in order, repeats included."""
        return [key for key, _ in self._entries]

    def discard(self) -> None:
        """Drop every plaintext value held by this set."""
        self._entries.clear()

    def __iter__(self) -> Iterator[tuple[str, bytes]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"CredentialSet(keys={self.keys()!r})"


@dataclass(frozen=True, slots=True)
class SecretManifest:
    """An unsealed Opaque secret with base64-encoded values.

    Attributes:
        name: The secret name.
        namespace: The namespace the secret belongs to.
        data: Mapping of key to base64 text.
        type: The Kubernetes secret type.

    """

    name: str
    namespace: str
    data: dict[str, str] = field(repr=False)
    type: str = SECRET_TYPE_OPAQUE

    def to_document(self) -> dict[str, Any]:
        """Return the plaintext Secret document expected by kubeseal."""
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": self.name, "namespace": self.namespace},
            "type": self.type,
            "data": dict(self.data),
        }


@dataclass(frozen=True, slots=True)
class EncryptedManifest:
    """A SealedSecret document.

    Attributes:
        name: The secret name from metadata.
        namespace: The namespace from metadata.
        encrypted_data: Mapping of key to opaque ciphertext.
        template: The spec.template section (metadata and type).
        annotations: metadata.annotations, if any.

    """

    name: str
    namespace: str
    encrypted_data: dict[str, str]
    template: dict[str, Any]
    annotations: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Any, source: str = "<document>") -> "EncryptedManifest":
        """Build an EncryptedManifest from a parsed YAML document.

        Args:
            document: The parsed document.
            source: Label used in error messages.

        Returns:
            The EncryptedManifest.

        Raises:
            SecretParsingError: If the document is not a complete SealedSecret.

        """
        if not isinstance(document, dict):
            raise SecretParsingError(f"{source} is not a YAML mapping")
        if document.get("apiVersion") != SEALED_SECRET_API_VERSION or document.get("kind") != SEALED_SECRET_KIND:
            raise SecretParsingError(
                f"{source} is not a SealedSecret "
                f"(apiVersion={document.get('apiVersion')!r}, kind={document.get('kind')!r})"
            )

        metadata = document.get("metadata") or {}
        spec = document.get("spec") or {}
        if not isinstance(metadata, dict):
            raise SecretParsingError(f"{source} has a metadata section that is not a mapping")
        if not isinstance(spec, dict):
            raise SecretParsingError(f"{source} has a spec section that is not a mapping")
        encrypted_data = spec.get("encryptedData")
        template = spec.get("template")
        if not isinstance(encrypted_data, dict):
            raise SecretParsingError(f"{source} has no spec.encryptedData section")
        if not isinstance(template, dict):
            raise SecretParsingError(f"{source} has no spec.template section")
        annotations = metadata.get("annotations") or {}
        if not isinstance(annotations, dict):
            raise SecretParsingError(f"{source} has metadata.annotations that are not a mapping")

        return cls(
            name=str(metadata.get("name", "")),
            namespace=str(metadata.get("namespace", "")),
            encrypted_data={str(k): str(v) for k, v in encrypted_data.items()},
            template=template,
            annotations={str(k): str(v) for k, v in annotations.items()},
        )

    def to_document(self) -> dict[str, Any]:
        """Return the SealedSecret document for persisting."""
        metadata: dict[str, Any] = {"name": self.name, "namespace": self.namespace}
        if self.annotations:
            metadata["annotations"] = dict(self.annotations)
        return {
            "apiVersion": SEALED_SECRET_API_VERSION,
            "kind": SEALED_SECRET_KIND,
            "metadata": metadata,
            "spec": {
                "encryptedData": dict(self.encrypted_data),
                "template": self.template,
            },
        }


@dataclass(frozen=True, slots=True)
class KeyMappingEntry:
    """Binding of a logical credential to the secret key a template reads.

    Attributes:
        logical_id: Stable name for the credential's purpose.
        secret_name: Name of the secret holding it.
        key: Data key inside that secret.
        required: Whether deployments fail without it.
        prompt: Label used when asking the operator for the value.
        default: Fixed value used instead of prompting, if any.
        env_var: Environment variable the deployment template binds it to.

    """

    logical_id: str
    secret_name: str
    key: str
    required: bool = True
    prompt: str = ""
    default: str | None = None
    env_var: str | None = None


@dataclass(frozen=True, slots=True)
class CheckResult:
    """A single validation finding.

    Attributes:
        check: Which check produced it.
        target: The manifest file or ``secret/key`` binding it concerns.
        status: pass, warn or fail.
        message: Human readable detail.
        kind: Defect kind for non-passing results.

    """

    check: CheckId
    target: str
    status: CheckStatus
    message: str
    kind: FailureKind | None = None


@dataclass(slots=True)
class ValidationReport:
    """Ordered collection of check results for one validation run."""

    results: list[CheckResult] = field(default_factory=list)

    def add(self, result: CheckResult) -> None:
        """Append a result."""
        self.results.append(result)

    def of_kind(self, kind: FailureKind) -> list[CheckResult]:
        """Return every result of the given defect kind."""
        return [r for r in self.results if r.kind is kind]

    def with_status(self, status: CheckStatus) -> list[CheckResult]:
        """Return every result with the given status."""
        return [r for r in self.results if r.status is status]

    @property
    def verdict(self) -> CheckStatus:
        """Overall verdict: fail if any check failed, otherwise pass."""
        if any(r.status is CheckStatus.FAIL for r in self.results):
            return CheckStatus.FAIL
        return CheckStatus.PASS

    @property
    def passed(self) -> bool:
        """Whether the run passed (warnings allowed)."""
        return self.verdict is CheckStatus.PASS


@dataclass(frozen=True, slots=True)
class ProvisioningConfig:
    """Settings for a provisioning or validation run.

    Attributes:
        namespace: Namespace every sealed secret is created in.
        scope: Sealing scope passed to kubeseal.
        output_dir: Directory holding one manifest file per secret.
        argocd_annotations: Whether to add ArgoCD sync-options to manifests.

    """

    namespace: str = DEFAULT_NAMESPACE
    scope: ScopePolicy = ScopePolicy.NAMESPACE_WIDE
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    argocd_annotations: bool = False
