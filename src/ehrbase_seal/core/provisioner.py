"""Provisioning orchestrator.

This module provides the Provisioner class which runs both pipelines:
building and sealing every registry secret into the output directory, and
validating the manifests found there.
"""

import contextlib
from collections.abc import Mapping
from pathlib import Path

from icecream import ic

from ehrbase_seal import console
from ehrbase_seal.exceptions import MissingCredentialsError, SecretParsingError
from ehrbase_seal.models import CredentialSet, EncryptedManifest, ProvisioningConfig, ValidationReport
from ehrbase_seal.secrets.creation import build_secret_manifest
from ehrbase_seal.secrets.parsing import add_argo_annotation, dump_document, parse_secret_file
from ehrbase_seal.secrets.registry import DEFAULT_REGISTRY, KeyMappingRegistry
from ehrbase_seal.secrets.sealing import SealingClient
from ehrbase_seal.secrets.validation import ManifestCandidate, validate_manifests

_STAGING_SUFFIX = "_new"


class Provisioner:
    """Coordinates the provisioning and validation pipelines.

    Attributes:
        config: Namespace, scope and output location for the run.
        sealing_client: Client used to seal manifests (provisioning only).
        registry: The key-mapping registry both pipelines consult.

    """

    def __init__(
        self,
        config: ProvisioningConfig,
        sealing_client: SealingClient | None = None,
        registry: KeyMappingRegistry = DEFAULT_REGISTRY,
    ) -> None:
        """Initialize the Provisioner.

        Args:
            config: Settings for the run.
            sealing_client: Client used by provision(); not needed for validate().
            registry: The key-mapping registry.

        """
        self.config: ProvisioningConfig = config
        self.sealing_client: SealingClient | None = sealing_client
        self.registry: KeyMappingRegistry = registry

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Provisioner(config={self.config!r}, registry={self.registry!r})"

    def manifest_path(self, secret_name: str) -> Path:
        """Return where the sealed manifest for a secret is stored."""
        return self.config.output_dir / self.registry.manifest_filename(secret_name)

    def _seal_all(self, credentials: Mapping[str, CredentialSet]) -> list[tuple[str, EncryptedManifest]]:
        """Build and seal every registry secret, in registry order.

        Returns:
            (secret name, sealed manifest) pairs.

        Raises:
            MissingCredentialsError: If a registry secret has no credential set.
            InvalidIdentifierError, DuplicateKeyError: If a manifest cannot be built.
            SealingUnavailableError, SealingKeyMismatchError: If sealing fails.

        """
        if self.sealing_client is None:
            raise ValueError("Provisioning requires a sealing client")

        secret_names = self.registry.secret_names()
        sealed: list[tuple[str, EncryptedManifest]] = []

        with console.create_task_progress() as progress:
            task = progress.add_task("Sealing secrets", total=len(secret_names))
            for secret_name in secret_names:
                credential_set = credentials.get(secret_name)
                if credential_set is None:
                    raise MissingCredentialsError(f"No credentials supplied for secret '{secret_name}'")

                try:
                    manifest = build_secret_manifest(secret_name, self.config.namespace, credential_set)
                finally:
                    credential_set.discard()

                sealed.append((secret_name, self.sealing_client.seal(manifest, self.config.scope)))
                progress.update(task, advance=1)

        return sealed

    def _write_all(self, sealed: list[tuple[str, EncryptedManifest]]) -> list[Path]:
        """Write sealed manifests, replacing files only once all are staged.

        Raises:
            OSError: If any file cannot be staged or moved into place; staged
                files that remain are removed.

        """
        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        staged: list[tuple[Path, Path]] = []

        try:
            for secret_name, manifest in sealed:
                target = self.manifest_path(secret_name)
                staging = target.with_suffix(target.suffix + _STAGING_SUFFIX)
                document = manifest.to_document()
                if self.config.argocd_annotations:
                    add_argo_annotation(document)
                staged.append((staging, target))
                staging.write_text(dump_document(document))
        except OSError:
            self._remove_staged(staged)
            raise

        for index, (staging, target) in enumerate(staged):
            try:
                # Atomic replace once everything is staged
                staging.replace(target)
            except OSError:
                self._remove_staged(staged[index:])
                raise

        return [target for _, target in staged]

    @staticmethod
    def _remove_staged(staged: list[tuple[Path, Path]]) -> None:
        for staging, _ in staged:
            with contextlib.suppress(OSError):
                staging.unlink(missing_ok=True)

    def provision(self, credentials: Mapping[str, CredentialSet]) -> list[Path]:
        """Build, seal and write a manifest for every registry secret.

        Nothing is written unless every secret is sealed successfully.

        Args:
            credentials: Mapping of secret name to its plaintext CredentialSet.
                Every set is discarded once encoded.

        Returns:
            Paths of the written manifest files, in registry order.

        """
        console.action(
            f"Generating sealed secrets for namespace {console.highlight(self.config.namespace)} "
            f"with scope {console.highlight(self.config.scope.value)}"
        )
        try:
            sealed = self._seal_all(credentials)
        finally:
            for credential_set in credentials.values():
                credential_set.discard()

        written = self._write_all(sealed)
        ic(written)
        return written

    def _load_candidates(self) -> tuple[list[ManifestCandidate], list[tuple[str, str]]]:
        """Read the expected manifest file for every registry secret."""
        candidates: list[ManifestCandidate] = []
        absent: list[tuple[str, str]] = []

        for secret_name in self.registry.secret_names():
            path = self.manifest_path(secret_name)
            if not path.is_file():
                absent.append((secret_name, str(path)))
                continue
            try:
                candidates.append(ManifestCandidate(source=str(path), document=parse_secret_file(path)))
            except SecretParsingError as err:
                candidates.append(ManifestCandidate(source=str(path), document=None, error=str(err)))

        ic(len(candidates), absent)
        return candidates, absent

    def validate(self) -> ValidationReport:
        """Validate the manifests stored in the output directory.

        Returns:
            The ValidationReport; missing files are reported as MissingKeys.

        """
        console.action(f"Validating sealed secrets in {console.highlight(str(self.config.output_dir))}")
        candidates, absent = self._load_candidates()
        return validate_manifests(candidates, self.registry, absent=absent)
