"""Secret sealing operations.

This module provides the SealingClient, which hands a plaintext secret
manifest to the sealing oracle (normally the kubeseal binary) and checks
that what comes back protects exactly the keys that went in.
"""

import contextlib
import os
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from tempfile import NamedTemporaryFile

from icecream import ic

from ehrbase_seal import console
from ehrbase_seal.exceptions import SealingKeyMismatchError, SealingUnavailableError, SecretParsingError
from ehrbase_seal.models import EncryptedManifest, ScopePolicy, SecretManifest
from ehrbase_seal.secrets.parsing import dump_document, parse_secret_text

# Callable that seals the Secret document stored in a file and returns the
# SealedSecret document as YAML text.
SealingOracle = Callable[[Path, ScopePolicy], str]

_PLAINTEXT_FILE_MODE = 0o600


@contextmanager
def plaintext_secret_file(manifest: SecretManifest) -> Generator[Path, None, None]:
    """Write the unsealed Secret document to a private temporary file.

    The file is created readable by the owner only and removed when the
    context exits, whether or not an exception was raised.

    Args:
        manifest: The manifest to serialise.

    Yields:
        Path to the temporary file.

    """
    # Create temp file with delete=False so the oracle can reopen it by name
    temp_file = NamedTemporaryFile(mode="w", prefix="ehrbase-seal-", suffix=".yaml", delete=False)
    temp_path = Path(temp_file.name)
    try:
        with temp_file:
            os.chmod(temp_path, _PLAINTEXT_FILE_MODE)
            temp_file.write(dump_document(manifest.to_document()))
        yield temp_path
    finally:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)


def verify_sealed_identity(manifest: SecretManifest, sealed: EncryptedManifest) -> None:
    """Check that a sealed manifest describes the secret that was sealed.

    Raises:
        SealingUnavailableError: If the name or namespace differ.

    """
    if (sealed.name, sealed.namespace) == (manifest.name, manifest.namespace):
        return
    raise SealingUnavailableError(
        f"Sealed secret '{manifest.namespace}/{manifest.name}' came back as "
        f"'{sealed.namespace}/{sealed.name}'"
    )


def verify_sealed_keys(manifest: SecretManifest, sealed: EncryptedManifest) -> None:
    """Check that a sealed manifest protects exactly the manifest's keys.

    Args:
        manifest: The plaintext manifest that was sealed.
        sealed: The oracle's output.

    Raises:
        SealingKeyMismatchError: If any key was dropped or added.

    """
    expected = set(manifest.data)
    actual = set(sealed.encrypted_data)
    if expected == actual:
        return

    problems = []
    if missing := sorted(expected - actual):
        problems.append(f"missing keys: {', '.join(missing)}")
    if unexpected := sorted(actual - expected):
        problems.append(f"unexpected keys: {', '.join(unexpected)}")
    raise SealingKeyMismatchError(f"Sealed secret '{manifest.name}' does not match its input ({'; '.join(problems)})")


class SealingClient:
    """Seals SecretManifests through an external oracle.

    Attributes:
        oracle: Callable that performs the actual sealing.

    """

    def __init__(self, oracle: SealingOracle) -> None:
        """Initialize the client.

        Args:
            oracle: The sealing oracle, usually a core.kubeseal.Kubeseal instance.

        """
        self.oracle: SealingOracle = oracle

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"SealingClient(oracle={self.oracle!r})"

    def seal(self, manifest: SecretManifest, scope: ScopePolicy) -> EncryptedManifest:
        """Seal a manifest under the given scope.

        Args:
            manifest: The plaintext manifest.
            scope: namespace-wide or cluster-wide.

        Returns:
            The EncryptedManifest.

        Raises:
            SealingUnavailableError: If the oracle fails or returns something
                that is not a SealedSecret for this name and namespace.
            SealingKeyMismatchError: If the sealed keys differ from the input keys.

        """
        console.step(f"Sealing {console.highlight(manifest.name)} ({scope.value})")

        with plaintext_secret_file(manifest) as plaintext_path:
            try:
                output = self.oracle(plaintext_path, scope)
            except SealingUnavailableError as err:
                raise SealingUnavailableError(f"Could not seal secret '{manifest.name}': {err}") from err

        source = f"kubeseal output for secret '{manifest.name}'"
        try:
            sealed = EncryptedManifest.from_document(parse_secret_text(output, source), source)
        except SecretParsingError as err:
            raise SealingUnavailableError(str(err)) from err

        ic(sealed.name, sealed.namespace, sorted(sealed.encrypted_data))
        verify_sealed_identity(manifest, sealed)
        verify_sealed_keys(manifest, sealed)
        return sealed
