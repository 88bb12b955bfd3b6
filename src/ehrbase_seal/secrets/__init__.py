"""Secrets management subpackage.

This package contains modules for manifest creation, sealing, parsing,
validation, the key-mapping registry and user interaction prompts.
"""

from ehrbase_seal.secrets.creation import build_secret_manifest
from ehrbase_seal.secrets.parsing import add_argo_annotation, parse_secret_file
from ehrbase_seal.secrets.prompts import collect_credentials, prompt_namespace, prompt_scope
from ehrbase_seal.secrets.registry import DEFAULT_REGISTRY, KeyMappingRegistry, load_registry
from ehrbase_seal.secrets.sealing import (
    SealingClient,
    plaintext_secret_file,
    verify_sealed_identity,
    verify_sealed_keys,
)
from ehrbase_seal.secrets.validation import ManifestCandidate, validate_manifests

__all__ = [
    # creation
    "build_secret_manifest",
    # parsing
    "parse_secret_file",
    "add_argo_annotation",
    # prompts
    "collect_credentials",
    "prompt_namespace",
    "prompt_scope",
    # registry
    "KeyMappingRegistry",
    "DEFAULT_REGISTRY",
    "load_registry",
    # sealing
    "SealingClient",
    "plaintext_secret_file",
    "verify_sealed_identity",
    "verify_sealed_keys",
    # validation
    "ManifestCandidate",
    "validate_manifests",
]
