"""Kubeseal oracle adapter.

This module provides the Kubeseal class which runs the kubeseal binary to
turn a plaintext Secret document into a SealedSecret document. kubeseal
owns all cryptography; this class only chooses how it is invoked.
"""

import shutil
import subprocess
from pathlib import Path

from icecream import ic

from ehrbase_seal import console
from ehrbase_seal.core.cluster import resolve_context
from ehrbase_seal.exceptions import BinaryNotFoundError, SealingUnavailableError
from ehrbase_seal.models import ScopePolicy

# CLI flag constant for kubeseal commands
_FORMAT_YAML = "--format=yaml"

DEFAULT_CONTROLLER_NAME = "sealed-secrets-controller"
DEFAULT_CONTROLLER_NAMESPACE = "kube-system"


class Kubeseal:
    """Wrapper for kubeseal binary invocations.

    Attributes:
        detached_mode: Whether sealing uses a local certificate instead of the cluster.
        binary: Path to the kubeseal binary.
        certificate: Path to the certificate file (detached mode only).
        controller_name: Name of the SealedSecrets controller.
        controller_namespace: Namespace of the SealedSecrets controller.
        current_context_name: Kubernetes context name (connected mode only).

    """

    def __init__(
        self,
        *,
        select_context: bool = False,
        certificate: str | None = None,
        context: str | None = None,
        controller_name: str = DEFAULT_CONTROLLER_NAME,
        controller_namespace: str = DEFAULT_CONTROLLER_NAMESPACE,
        binary: str | None = None,
    ) -> None:
        """Initialize Kubeseal with a certificate or a kube context.

        Args:
            select_context: If True, prompt user to select a Kubernetes context.
            certificate: Path to certificate file for detached mode. If provided,
                        no kube context is needed.
            context: Explicit Kubernetes context to use.
            controller_name: Name of the SealedSecrets controller service.
            controller_namespace: Namespace of the SealedSecrets controller.
            binary: Path to the kubeseal binary; looked up on PATH if omitted.

        Raises:
            BinaryNotFoundError: If the kubeseal binary cannot be found.

        """
        self.detached_mode: bool = False
        self.certificate: str | None = None
        self.controller_name: str = controller_name
        self.controller_namespace: str = controller_namespace
        self.current_context_name: str = ""
        self.binary: str = self._resolve_binary(binary)

        if certificate is not None:
            console.info("Working in detached mode")
            self.detached_mode = True
            self.certificate = certificate
        else:
            self.current_context_name = resolve_context(select_context=select_context, context=context)

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        if self.detached_mode:
            return f"Kubeseal(detached_mode=True, certificate={self.certificate!r})"
        return f"Kubeseal(context={self.current_context_name!r}, controller={self.controller_name!r})"

    @staticmethod
    def _resolve_binary(binary: str | None) -> str:
        """Return the kubeseal binary path.

        Raises:
            BinaryNotFoundError: If kubeseal is not found.

        """
        candidate = binary or "kubeseal"
        resolved = shutil.which(candidate)
        if resolved is None:
            raise BinaryNotFoundError(
                f"kubeseal binary '{candidate}' not found. Please install kubeseal or ensure it's in your PATH. "
                "See: https://github.com/bitnami-labs/sealed-secrets#installation"
            )
        return resolved

    def _build_kubeseal_cmd(self, scope: ScopePolicy) -> list[str]:
        """Build a kubeseal command with common flags.

        Constructs the base kubeseal command with appropriate flags for either
        detached mode (using certificate) or connected mode (using controller info).

        Args:
            scope: The sealing scope.

        Returns:
            List of command arguments ready for subprocess execution.

        """
        cmd: list[str] = [self.binary, _FORMAT_YAML, f"--scope={scope.value}"]

        if self.detached_mode:
            cmd.append(f"--cert={self.certificate}")
        else:
            cmd.extend(
                [
                    f"--context={self.current_context_name}",
                    f"--controller-namespace={self.controller_namespace}",
                    f"--controller-name={self.controller_name}",
                ]
            )

        return cmd

    def __call__(self, plaintext_path: Path, scope: ScopePolicy) -> str:
        """Seal the Secret document stored at plaintext_path.

        Args:
            plaintext_path: File holding the plaintext Secret document.
            scope: The sealing scope.

        Returns:
            The SealedSecret document printed by kubeseal.

        Raises:
            SealingUnavailableError: If kubeseal cannot be run or fails.

        """
        cmd = self._build_kubeseal_cmd(scope)
        ic(cmd)

        try:
            with open(plaintext_path, "rb") as stdin_f:
                result = subprocess.run(cmd, stdin=stdin_f, capture_output=True, check=True)
        except FileNotFoundError as err:
            raise BinaryNotFoundError(f"kubeseal binary '{self.binary}' could not be executed") from err
        except OSError as err:
            raise SealingUnavailableError(f"kubeseal binary '{self.binary}' could not be run: {err}") from err
        except subprocess.CalledProcessError as err:
            stderr_msg = err.stderr.decode(errors="replace").strip() if err.stderr else ""
            details = f" - {stderr_msg}" if stderr_msg else ""
            raise SealingUnavailableError(f"kubeseal failed (exit code {err.returncode}){details}") from err

        return result.stdout.decode()
