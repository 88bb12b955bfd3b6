"""Sealed manifest validation.

This module checks parsed SealedSecret documents against the key-mapping
registry. Every check runs for every manifest and each finding becomes a
report entry; nothing here raises on bad input.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from icecream import ic

from ehrbase_seal.models import (
    SEALED_SECRET_API_VERSION,
    SEALED_SECRET_KIND,
    CheckId,
    CheckResult,
    CheckStatus,
    FailureKind,
    ValidationReport,
)
from ehrbase_seal.secrets.registry import KeyMappingRegistry

_REQUIRED_SECTIONS = ("encryptedData", "template")


@dataclass(frozen=True, slots=True)
class ManifestCandidate:
    """A persisted manifest offered for validation.

    Attributes:
        source: Where it came from (usually the file path).
        document: The parsed YAML document (a mapping for any usable
            manifest), or None if empty or unreadable.
        error: Why the file could not be parsed, if it could not.

    """

    source: str
    document: Any
    error: str | None = None

    @property
    def secret_name(self) -> str | None:
        """The metadata.name the manifest declares, if any."""
        metadata = self.document.get("metadata") if isinstance(self.document, dict) else None
        if isinstance(metadata, dict) and metadata.get("name"):
            return str(metadata["name"])
        return None

    def _spec(self) -> dict[str, Any]:
        spec = self.document.get("spec") if isinstance(self.document, dict) else None
        return spec if isinstance(spec, dict) else {}

    @property
    def encrypted_keys(self) -> set[str]:
        """Keys of spec.encryptedData, empty if the section is missing."""
        encrypted_data = self._spec().get("encryptedData")
        if not isinstance(encrypted_data, dict):
            return set()
        return {str(key) for key in encrypted_data}

    def missing_sections(self) -> list[str]:
        """Return the spec sections that are absent or not mappings."""
        spec = self._spec()
        return [f"spec.{section}" for section in _REQUIRED_SECTIONS if not isinstance(spec.get(section), dict)]


def _result(
    check: CheckId,
    target: str,
    status: CheckStatus,
    message: str,
    kind: FailureKind | None = None,
) -> CheckResult:
    return CheckResult(check=check, target=target, status=status, message=message, kind=kind)


def _check_schema(candidate: ManifestCandidate) -> CheckResult:
    if candidate.error is not None:
        return _result(
            CheckId.SCHEMA, candidate.source, CheckStatus.FAIL, candidate.error, FailureKind.NOT_A_SEALED_SECRET
        )
    if candidate.document is None:
        return _result(
            CheckId.SCHEMA,
            candidate.source,
            CheckStatus.FAIL,
            "File is empty",
            FailureKind.NOT_A_SEALED_SECRET,
        )
    if not isinstance(candidate.document, dict):
        return _result(
            CheckId.SCHEMA,
            candidate.source,
            CheckStatus.FAIL,
            f"Expected a YAML mapping, found {type(candidate.document).__name__}",
            FailureKind.NOT_A_SEALED_SECRET,
        )

    api_version = candidate.document.get("apiVersion")
    kind = candidate.document.get("kind")
    if api_version != SEALED_SECRET_API_VERSION or kind != SEALED_SECRET_KIND:
        return _result(
            CheckId.SCHEMA,
            candidate.source,
            CheckStatus.FAIL,
            f"Expected {SEALED_SECRET_API_VERSION}/{SEALED_SECRET_KIND}, found {api_version}/{kind}",
            FailureKind.NOT_A_SEALED_SECRET,
        )
    return _result(CheckId.SCHEMA, candidate.source, CheckStatus.PASS, "Proper SealedSecret format")


def _check_sections(candidate: ManifestCandidate) -> CheckResult:
    missing = candidate.missing_sections()
    if missing:
        return _result(
            CheckId.SECTIONS,
            candidate.source,
            CheckStatus.FAIL,
            f"Missing section(s): {', '.join(missing)}",
            FailureKind.MISSING_SECTION,
        )
    return _result(CheckId.SECTIONS, candidate.source, CheckStatus.PASS, "Contains encryptedData and template sections")


def _check_keys(candidate: ManifestCandidate, registry: KeyMappingRegistry) -> list[CheckResult]:
    secret_name = candidate.secret_name
    if secret_name is None or secret_name not in registry.all_secret_names():
        label = f"Secret '{secret_name}'" if secret_name else "Manifest without metadata.name"
        return [
            _result(
                CheckId.KEYS,
                candidate.source,
                CheckStatus.WARN,
                f"{label} is not referenced by any deployment binding",
                FailureKind.UNKNOWN_SECRET,
            )
        ]

    present = candidate.encrypted_keys
    results: list[CheckResult] = []

    missing = sorted(registry.required_keys_for(secret_name) - present)
    if missing:
        results.append(
            _result(
                CheckId.KEYS,
                candidate.source,
                CheckStatus.FAIL,
                f"Secret '{secret_name}' is missing keys: {', '.join(missing)}",
                FailureKind.MISSING_KEYS,
            )
        )
    else:
        results.append(
            _result(CheckId.KEYS, candidate.source, CheckStatus.PASS, f"Secret '{secret_name}' has all expected keys")
        )

    unexpected = sorted(present - registry.keys_for(secret_name))
    if unexpected:
        results.append(
            _result(
                CheckId.KEYS,
                candidate.source,
                CheckStatus.WARN,
                f"Secret '{secret_name}' has keys no deployment binding uses: {', '.join(unexpected)}",
                FailureKind.UNEXPECTED_KEYS,
            )
        )

    return results


def _check_references(candidates: list[ManifestCandidate], registry: KeyMappingRegistry) -> list[CheckResult]:
    results: list[CheckResult] = []

    for entry in registry:
        target = f"{entry.secret_name}/{entry.key}"
        providers = [
            candidate.source
            for candidate in candidates
            if candidate.secret_name == entry.secret_name and entry.key in candidate.encrypted_keys
        ]

        if not providers:
            results.append(
                _result(
                    CheckId.REFERENCES,
                    target,
                    CheckStatus.FAIL if entry.required else CheckStatus.WARN,
                    f"No manifest provides key '{entry.key}' of secret '{entry.secret_name}' ({entry.logical_id})",
                    FailureKind.UNRESOLVED_REFERENCE,
                )
            )
        elif len(providers) > 1:
            results.append(
                _result(
                    CheckId.REFERENCES,
                    target,
                    CheckStatus.FAIL,
                    f"Key '{entry.key}' of secret '{entry.secret_name}' is provided by {len(providers)} manifests: "
                    f"{', '.join(providers)}",
                    FailureKind.AMBIGUOUS_REFERENCE,
                )
            )
        else:
            results.append(
                _result(CheckId.REFERENCES, target, CheckStatus.PASS, f"Provided by {providers[0]}")
            )

    return results


def _absent_manifest(secret_name: str, source: str, registry: KeyMappingRegistry) -> CheckResult:
    required = sorted(registry.required_keys_for(secret_name))
    keys = required or sorted(registry.keys_for(secret_name))
    return _result(
        CheckId.KEYS,
        source,
        CheckStatus.FAIL if required else CheckStatus.WARN,
        f"Manifest for secret '{secret_name}' not found; missing keys: {', '.join(keys)}",
        FailureKind.MISSING_KEYS,
    )


def validate_manifests(
    candidates: Iterable[ManifestCandidate],
    registry: KeyMappingRegistry,
    absent: Iterable[tuple[str, str]] = (),
) -> ValidationReport:
    """Validate sealed manifests against the key-mapping registry.

    Args:
        candidates: The parsed manifests.
        registry: The registry of expected bindings.
        absent: (secret name, expected location) pairs for manifests that
            were expected but not found.

    Returns:
        A ValidationReport holding every finding.

    """
    candidates = list(candidates)
    report = ValidationReport()

    for secret_name, source in absent:
        report.add(_absent_manifest(secret_name, source, registry))

    for candidate in candidates:
        ic(candidate.source, candidate.secret_name)
        report.add(_check_schema(candidate))
        report.add(_check_sections(candidate))
        for result in _check_keys(candidate, registry):
            report.add(result)

    for result in _check_references(candidates, registry):
        report.add(result)

    return report
