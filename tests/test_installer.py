"""
Tests for go install execution (gbvm/installer.py).
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from gbvm.config import Config
from gbvm.errors import InstallFailed
from gbvm.installer import GoInstaller, InstallResult, install_directive


class TestInstallDirective:
    """Tests for install_directive."""

    def test_format(self):
        assert install_directive("golang.org/x/tools/gopls", "v0.14.2") == "golang.org/x/tools/gopls@v0.14.2"


class TestGoInstaller:
    """Tests for GoInstaller.install."""

    @patch("gbvm.installer.subprocess.run")
    def test_install_success(self, mock_run):
        """Test a successful install runs go install path@version."""
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        installer = GoInstaller(go_binary="go", env={"PATH": "/usr/bin"})
        result = installer.install("github.com/go-delve/delve/cmd/dlv", "v1.22.0")

        assert isinstance(result, InstallResult)
        assert result.success is True
        assert result.directive == "github.com/go-delve/delve/cmd/dlv@v1.22.0"
        command = mock_run.call_args[0][0]
        assert command == ["go", "install", "github.com/go-delve/delve/cmd/dlv@v1.22.0"]

    @patch("gbvm.installer.subprocess.run")
    def test_install_sets_gobin(self, mock_run):
        """Test GOBIN is exported to the go command."""
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        installer = GoInstaller(gobin="/opt/gobin", env={"PATH": "/usr/bin"})
        installer.install("example.com/x", "v1.0.0")

        env = mock_run.call_args[1]["env"]
        assert env["GOBIN"] == "/opt/gobin"
        assert env["PATH"] == "/usr/bin"

    @patch("gbvm.installer.subprocess.run")
    def test_install_nonzero_exit(self, mock_run):
        """Test a failing go install raises InstallFailed with stderr."""
        mock_run.return_value = MagicMock(
            returncode=1, stdout="", stderr="go: example.com/x@v9.9.9: invalid version\n",
        )

        with pytest.raises(InstallFailed) as exc_info:
            GoInstaller().install("example.com/x", "v9.9.9")

        assert exc_info.value.exit_code == 1
        assert exc_info.value.directive == "example.com/x@v9.9.9"
        assert "invalid version" in str(exc_info.value)

    @patch("gbvm.installer.subprocess.run")
    def test_install_go_missing(self, mock_run):
        """Test a missing go executable raises InstallFailed."""
        mock_run.side_effect = FileNotFoundError()

        with pytest.raises(InstallFailed, match="command not found: go"):
            GoInstaller().install("example.com/x", "v1.0.0")

    @patch("gbvm.installer.subprocess.run")
    def test_install_go_not_executable(self, mock_run):
        """Test any OSError starting go raises InstallFailed."""
        mock_run.side_effect = PermissionError(13, "Permission denied")

        with pytest.raises(InstallFailed, match="Permission denied") as exc_info:
            GoInstaller(go_binary="/opt/go/bin/go").install("example.com/x", "v1.0.0")

        assert exc_info.value.exit_code == -1

    @patch("gbvm.installer.subprocess.run")
    def test_output_decoding_is_lenient(self, mock_run):
        """Test undecodable output is replaced rather than raised."""
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        GoInstaller().install("example.com/x", "v1.0.0")

        assert mock_run.call_args[1]["errors"] == "replace"

    @patch("gbvm.installer.subprocess.run")
    def test_install_timeout(self, mock_run):
        """Test a timeout raises InstallFailed."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="go", timeout=1)

        with pytest.raises(InstallFailed, match="timed out"):
            GoInstaller(timeout=1).install("example.com/x", "v1.0.0")

    @patch("gbvm.installer.subprocess.run")
    def test_long_stderr_trimmed(self, mock_run):
        """Test stderr is trimmed in the error message."""
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="x" * 5000)

        with pytest.raises(InstallFailed) as exc_info:
            GoInstaller().install("example.com/x", "v1.0.0")

        assert len(exc_info.value.stderr) < 500

    def test_from_config(self, tmp_path):
        """Test installer settings come from config."""
        config = Config(gobin=str(tmp_path), go_binary="/usr/local/go/bin/go")
        installer = GoInstaller.from_config(config)

        assert installer.go_binary == "/usr/local/go/bin/go"
        assert installer.env["GOBIN"] == str(tmp_path)
