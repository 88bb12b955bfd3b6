"""ehrbase-seal: SealedSecret provisioning and validation for EHRbase.

This package turns operator-supplied credentials into Bitnami SealedSecret
manifests via kubeseal, and checks persisted manifests against the
(secret, key) bindings the EHRbase chart templates expect.

Example usage:
    from ehrbase_seal import DEFAULT_REGISTRY, Provisioner, ProvisioningConfig

    # Validate the manifests in ./sealed-secrets
    report = Provisioner(ProvisioningConfig()).validate()
    print(report.verdict)
"""

__version__ = "0.1.0"

from ehrbase_seal.cli import cli
from ehrbase_seal.core.kubeseal import Kubeseal
from ehrbase_seal.core.provisioner import Provisioner
from ehrbase_seal.exceptions import (
    BinaryNotFoundError,
    ClusterConnectionError,
    DuplicateKeyError,
    InvalidIdentifierError,
    MalformedEncodingError,
    MissingCredentialsError,
    SealError,
    SealingKeyMismatchError,
    SealingUnavailableError,
    SecretParsingError,
    UnknownIdentifierError,
)
from ehrbase_seal.models import (
    CredentialSet,
    EncryptedManifest,
    ProvisioningConfig,
    ScopePolicy,
    SecretManifest,
    ValidationReport,
)
from ehrbase_seal.secrets.registry import DEFAULT_REGISTRY, KeyMappingRegistry

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Classes
    "Kubeseal",
    "Provisioner",
    "KeyMappingRegistry",
    "DEFAULT_REGISTRY",
    # Models
    "CredentialSet",
    "SecretManifest",
    "EncryptedManifest",
    "ProvisioningConfig",
    "ScopePolicy",
    "ValidationReport",
    # Exceptions
    "SealError",
    "InvalidIdentifierError",
    "MissingCredentialsError",
    "DuplicateKeyError",
    "MalformedEncodingError",
    "UnknownIdentifierError",
    "SealingUnavailableError",
    "BinaryNotFoundError",
    "SealingKeyMismatchError",
    "ClusterConnectionError",
    "SecretParsingError",
]
