"""Manifest file parsing and annotation utilities.

This module provides functions for parsing YAML manifest files, writing
sealed manifests and adding ArgoCD annotations.
"""

from pathlib import Path
from typing import Any

import yaml

from ehrbase_seal.exceptions import SecretParsingError

_ARGOCD_SYNC_KEY = "argocd.argoproj.io/sync-options"
_SKIP_DRY_RUN_OPTION = "SkipDryRunOnMissingResource=true"


def parse_secret_file(secret_path: str | Path) -> dict[str, Any] | None:
    """Parse a YAML manifest file.

    Args:
        secret_path: Path to the manifest file.

    Returns:
        The parsed YAML document as a dictionary, or None if empty.

    Raises:
        SecretParsingError: If the file does not exist or cannot be read as
            UTF-8 text, contains multiple documents, contains malformed/invalid
            YAML, or is not a YAML mapping.

    """
    try:
        with open(secret_path, encoding="utf-8") as stream:
            docs = [doc for doc in yaml.safe_load_all(stream) if doc is not None]
            if len(docs) > 1:
                raise SecretParsingError(
                    f"File '{secret_path}' contains multiple YAML documents. Only single document files are supported."
                )
            if not docs:
                return None
            result = docs[0]
            if not isinstance(result, dict):
                raise SecretParsingError(
                    f"File '{secret_path}' does not contain a valid YAML mapping. "
                    "Expected a Kubernetes resource document."
                )
            return result
    except FileNotFoundError as err:
        raise SecretParsingError(f"Secret file '{secret_path}' does not exist") from err
    except UnicodeDecodeError as err:
        raise SecretParsingError(f"Secret file '{secret_path}' is not valid UTF-8 text: {err}") from err
    except OSError as err:
        raise SecretParsingError(f"Secret file '{secret_path}' cannot be read: {err}") from err
    except yaml.YAMLError as err:
        raise SecretParsingError(f"Secret file '{secret_path}' contains malformed YAML: {err}") from err


def parse_secret_text(text: str, source: str) -> dict[str, Any]:
    """Parse a single YAML document held in memory.

    Args:
        text: The YAML text.
        source: Label used in error messages.

    Returns:
        The parsed mapping.

    Raises:
        SecretParsingError: If the text is empty, malformed or not a mapping.

    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise SecretParsingError(f"{source} contains malformed YAML: {err}") from err
    if not isinstance(document, dict):
        raise SecretParsingError(f"{source} does not contain a YAML mapping")
    return document


def dump_document(document: dict[str, Any]) -> str:
    """Serialise a manifest document to YAML text."""
    return yaml.safe_dump(document, sort_keys=False)


def add_argo_annotation(document: dict[str, Any]) -> dict[str, Any]:
    """Add the ArgoCD SkipDryRunOnMissingResource sync option to a manifest.

    This allows ArgoCD to process repositories with SealedSecrets
    before the controller is deployed in the cluster.

    Args:
        document: The SealedSecret document; updated in place.

    Returns:
        The same document.

    """
    annotations: dict[str, str] = document.setdefault("metadata", {}).setdefault("annotations", {})

    current_sync_options_str = annotations.get(_ARGOCD_SYNC_KEY, "")

    # Split, strip whitespace from each option, and filter out any empty strings
    # that might arise from consecutive commas or leading/trailing commas.
    options_list = [opt.strip() for opt in current_sync_options_str.split(",") if opt.strip()]

    # Drop any earlier SkipDryRunOnMissingResource value so it appears once.
    filtered_options = [opt for opt in options_list if not opt.startswith("SkipDryRunOnMissingResource=")]

    annotations[_ARGOCD_SYNC_KEY] = ",".join([_SKIP_DRY_RUN_OPTION, *filtered_options])
    return document
