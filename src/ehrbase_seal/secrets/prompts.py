"""Interactive user prompts for provisioning.

This module provides functions for collecting the namespace, sealing scope
and credential values from the operator via interactive prompts, together
with the Kubernetes naming rules the prompts and the builder share.
"""

import re

import questionary

from ehrbase_seal import console
from ehrbase_seal.models import DEFAULT_NAMESPACE, CredentialSet, ScopePolicy
from ehrbase_seal.secrets.registry import KeyMappingRegistry
from ehrbase_seal.styles import POINTER, PROMPT_STYLE, QMARK

# Kubernetes DNS subdomain name validation (RFC 1123)
_DNS_SUBDOMAIN_MAX_LENGTH = 253
_DNS_SUBDOMAIN_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"

# Namespaces are DNS labels: no dots, 63 characters at most
_DNS_LABEL_MAX_LENGTH = 63
_DNS_LABEL_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"

# Secret data keys
_DATA_KEY_MAX_LENGTH = 253
_DATA_KEY_PATTERN = r"^[-._a-zA-Z0-9]+$"


def validate_k8s_name(name: str) -> bool | str:
    """Validate a Kubernetes resource name (DNS subdomain).

    Args:
        name: The name to validate.

    Returns:
        True if valid, or an error message string if invalid.

    """
    if not name:
        return "Name cannot be empty"
    if len(name) > _DNS_SUBDOMAIN_MAX_LENGTH:
        return f"Name must be {_DNS_SUBDOMAIN_MAX_LENGTH} characters or less"
    if not re.match(_DNS_SUBDOMAIN_PATTERN, name):
        return "Name must consist of lowercase alphanumeric characters, '-' or '.', and must start and end with an alphanumeric character"
    return True


def validate_k8s_namespace(namespace: str) -> bool | str:
    """Validate a Kubernetes namespace (DNS label).

    Args:
        namespace: The namespace to validate.

    Returns:
        True if valid, or an error message string if invalid.

    """
    if not namespace:
        return "Namespace cannot be empty"
    if len(namespace) > _DNS_LABEL_MAX_LENGTH:
        return f"Namespace must be {_DNS_LABEL_MAX_LENGTH} characters or less"
    if not re.match(_DNS_LABEL_PATTERN, namespace):
        return "Namespace must consist of lowercase alphanumeric characters or '-', and must start and end with an alphanumeric character"
    return True


def validate_data_key(key: str) -> bool | str:
    """Validate a secret data key.

    Args:
        key: The key to validate.

    Returns:
        True if valid, or an error message string if invalid.

    """
    if not key:
        return "Key cannot be empty"
    if len(key) > _DATA_KEY_MAX_LENGTH:
        return f"Key must be {_DATA_KEY_MAX_LENGTH} characters or less"
    if not re.match(_DATA_KEY_PATTERN, key):
        return "Key must consist of alphanumeric characters, '-', '_' or '.'"
    return True


def prompt_namespace(default: str = DEFAULT_NAMESPACE) -> str:
    """Ask for the namespace the secrets are sealed for.

    Args:
        default: Value offered when the operator just presses Enter.

    Returns:
        The namespace.

    """
    return questionary.text(
        "Enter the namespace for EHRbase",
        default=default,
        validate=validate_k8s_namespace,
        style=PROMPT_STYLE,
        qmark=QMARK,
    ).unsafe_ask()


def prompt_scope() -> ScopePolicy:
    """Ask for the sealing scope.

    Returns:
        The selected ScopePolicy.

    """
    scope = questionary.select(
        "Select the scope for sealed secrets",
        choices=[
            {"name": "namespace-wide (recommended)", "value": ScopePolicy.NAMESPACE_WIDE.value},
            {"name": "cluster-wide", "value": ScopePolicy.CLUSTER_WIDE.value},
        ],
        style=PROMPT_STYLE,
        pointer=POINTER,
        qmark=QMARK,
    ).unsafe_ask()
    return ScopePolicy(scope)


def _prompt_secret_value(label: str) -> str:
    """Prompt for a single masked value.

    Args:
        label: What the value is for.

    Returns:
        The entered value.

    """
    return questionary.password(
        f"{label}:",
        validate=lambda x: True if x else "Value cannot be empty",
        style=PROMPT_STYLE,
        qmark=QMARK,
    ).unsafe_ask()


def collect_credentials(registry: KeyMappingRegistry) -> dict[str, CredentialSet]:
    """Collect a credential set for every secret the registry knows.

    Bindings with a fixed default (the usernames) are filled in without
    asking; every other value is prompted for with masked input.

    Args:
        registry: The key-mapping registry to collect values for.

    Returns:
        Mapping of secret name to its CredentialSet.

    """
    console.info("Enter the passwords for EHRbase")
    credentials: dict[str, CredentialSet] = {}

    for secret_name in registry.secret_names():
        values: list[tuple[str, str]] = []
        for entry in registry.entries_for(secret_name):
            if entry.default is not None:
                values.append((entry.key, entry.default))
                continue
            values.append((entry.key, _prompt_secret_value(entry.prompt or f"{secret_name}/{entry.key}")))
        credentials[secret_name] = CredentialSet(values)
        console.success(f"Collected {console.highlight(str(len(values)))} value(s) for {secret_name}")

    return credentials
