"""Custom exceptions for ehrbase-seal.

This module defines the exception hierarchy used throughout the application
to provide meaningful error messages and proper error handling. Every message
names the offending secret and/or key.
"""


class SealError(Exception):
    """Base exception for all ehrbase-seal errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch all ehrbase-seal errors with a single
    except clause if desired.
    """

    pass


class InvalidIdentifierError(SealError):
    """Raised when a secret name, namespace or data key is not acceptable.

    This can occur when:
    - The name is not a DNS-1123 subdomain
    - The namespace is not a DNS-1123 label
    - A data key is empty or contains characters Kubernetes rejects
    """

    pass


class MissingCredentialsError(InvalidIdentifierError):
    """Raised when no credential set was supplied for a required secret."""

    pass


class DuplicateKeyError(SealError):
    """Raised when a credential set repeats a key."""

    pass


class MalformedEncodingError(SealError):
    """Raised when a value is not valid base64."""

    pass


class UnknownIdentifierError(SealError):
    """Raised when a logical credential identifier has no registry entry."""

    pass


class SealingUnavailableError(SealError):
    """Raised when the sealing oracle cannot produce an encrypted manifest.

    This can occur when:
    - The kubeseal binary is missing
    - kubeseal exits with a non-zero status
    - kubeseal output is not a SealedSecret document
    """

    pass


class BinaryNotFoundError(SealingUnavailableError):
    """Raised when the kubeseal binary is not found."""

    pass


class SealingKeyMismatchError(SealError):
    """Raised when a sealed manifest does not carry exactly the keys that were sealed."""

    pass


class ClusterConnectionError(SealError):
    """Raised when the local kubeconfig cannot be read.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The requested context does not exist
    """

    pass


class SecretParsingError(SealError):
    """Raised when parsing a manifest file fails.

    This can occur when:
    - The file does not exist
    - The file is not valid YAML
    - The YAML does not represent a single Kubernetes resource
    """

    pass
