"""Tests for core/kubeseal.py module."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from ehrbase_seal.core.kubeseal import Kubeseal
from ehrbase_seal.exceptions import BinaryNotFoundError, SealingUnavailableError
from ehrbase_seal.models import ScopePolicy


@pytest.fixture
def plaintext_file(tmp_path, sample_secret_yaml):
    """Plaintext Secret file handed to kubeseal."""
    path = tmp_path / "secret.yaml"
    path.write_text(sample_secret_yaml)
    return path


class TestKubesealInit:
    """Tests for Kubeseal initialization."""

    def test_detached_mode(self, mock_which):  # noqa: ARG002
        """Test a certificate enables detached mode without a kubeconfig."""
        with patch("ehrbase_seal.core.kubeseal.resolve_context") as mock_resolve:
            kubeseal = Kubeseal(certificate="cert.pem")

            mock_resolve.assert_not_called()
        assert kubeseal.detached_mode is True
        assert kubeseal.certificate == "cert.pem"
        assert kubeseal.binary == "/usr/local/bin/kubeseal"

    def test_connected_mode(self, mock_which, mock_kube_contexts):  # noqa: ARG002
        """Test the kube context is resolved without a certificate."""
        kubeseal = Kubeseal(select_context=False)

        assert kubeseal.detached_mode is False
        assert kubeseal.current_context_name == "test-context"

    def test_custom_binary(self, mock_which):
        """Test an explicit binary path is resolved."""
        kubeseal = Kubeseal(certificate="cert.pem", binary="/opt/bin/kubeseal")

        mock_which.assert_called_once_with("/opt/bin/kubeseal")
        assert kubeseal.binary == "/usr/local/bin/kubeseal"

    def test_binary_not_found(self):
        """Test a missing kubeseal binary is reported."""
        with patch("ehrbase_seal.core.kubeseal.shutil.which", return_value=None):
            with pytest.raises(BinaryNotFoundError) as exc_info:
                Kubeseal(certificate="cert.pem")

        assert "not found" in str(exc_info.value)

    def test_repr(self, mock_which):  # noqa: ARG002
        """Test repr shows the mode."""
        assert "detached_mode=True" in repr(Kubeseal(certificate="cert.pem"))


class TestKubesealCommand:
    """Tests for kubeseal command construction."""

    @pytest.mark.parametrize("scope", list(ScopePolicy))
    def test_detached_command(self, mock_which, scope):  # noqa: ARG002
        """Test detached mode seals with the certificate."""
        cmd = Kubeseal(certificate="cert.pem")._build_kubeseal_cmd(scope)

        assert cmd == ["/usr/local/bin/kubeseal", "--format=yaml", f"--scope={scope.value}", "--cert=cert.pem"]

    def test_connected_command(self, mock_which, mock_kube_contexts):  # noqa: ARG002
        """Test connected mode names context and controller."""
        kubeseal = Kubeseal(context="prod", controller_name="sealed-secrets", controller_namespace="infra")

        cmd = kubeseal._build_kubeseal_cmd(ScopePolicy.NAMESPACE_WIDE)

        assert "--scope=namespace-wide" in cmd
        assert "--context=prod" in cmd
        assert "--controller-name=sealed-secrets" in cmd
        assert "--controller-namespace=infra" in cmd
        assert not any(arg.startswith("--cert") for arg in cmd)


class TestKubesealCall:
    """Tests for running kubeseal."""

    def test_call_returns_stdout(self, mock_which, plaintext_file, sample_sealed_secret_yaml):  # noqa: ARG002
        """Test the sealed document printed by kubeseal is returned."""
        kubeseal = Kubeseal(certificate="cert.pem")

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout=sample_sealed_secret_yaml.encode())

            output = kubeseal(plaintext_file, ScopePolicy.CLUSTER_WIDE)

        assert output == sample_sealed_secret_yaml
        cmd = mock_run.call_args[0][0]
        assert "--scope=cluster-wide" in cmd
        assert mock_run.call_args.kwargs["check"] is True
        assert str(mock_run.call_args.kwargs["stdin"].name) == str(plaintext_file)

    def test_call_failure(self, mock_which, plaintext_file):  # noqa: ARG002
        """Test a failing kubeseal run is reported with its stderr."""
        kubeseal = Kubeseal(certificate="cert.pem")

        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.CalledProcessError(1, "kubeseal", stderr=b"error: cannot fetch certificate")

            with pytest.raises(SealingUnavailableError) as exc_info:
                kubeseal(plaintext_file, ScopePolicy.NAMESPACE_WIDE)

        assert "exit code 1" in str(exc_info.value)
        assert "cannot fetch certificate" in str(exc_info.value)

    def test_call_binary_vanished(self, mock_which, plaintext_file):  # noqa: ARG002
        """Test a binary removed after lookup is reported as not found."""
        kubeseal = Kubeseal(certificate="cert.pem")

        with patch("subprocess.run", side_effect=FileNotFoundError("kubeseal")):
            with pytest.raises(BinaryNotFoundError):
                kubeseal(plaintext_file, ScopePolicy.NAMESPACE_WIDE)

    def test_call_not_executable(self, mock_which, plaintext_file):  # noqa: ARG002
        """Test an OSError other than a missing binary is reported as unavailable sealing."""
        kubeseal = Kubeseal(certificate="cert.pem")

        with patch("subprocess.run", side_effect=PermissionError("Permission denied")):
            with pytest.raises(SealingUnavailableError, match="could not be run") as exc_info:
                kubeseal(plaintext_file, ScopePolicy.NAMESPACE_WIDE)

        assert not isinstance(exc_info.value, BinaryNotFoundError)
