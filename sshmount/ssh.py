"""
Module defining the remote command capability that sshmount consumes.

sshmount does not implement SSH itself. Everything it does on the remote happens
through a Session, which runs a shell command and reports its exit code and output.
SSHSession is the default implementation and simply invokes the OpenSSH client for
every command, so authentication, multiplexing (ControlMaster) and host keys are all
handled by the user's regular SSH configuration.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import subprocess
from typing import Any, List, Optional


@dataclass
class SSHProcess:
    """Result of a remote command that ran to completion."""

    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    def read_std_output(self) -> str:
        """Decode the captured stdout."""
        return self.stdout.decode(errors="replace")

    def read_std_error(self) -> str:
        """Decode the captured stderr."""
        return self.stderr.decode(errors="replace")


class Session(ABC):
    """An authenticated channel for running commands on a remote host."""

    @abstractmethod
    def exec(self, command: str) -> SSHProcess:
        """Run a shell command on the remote and wait for it to finish."""

    @abstractmethod
    def popen(self, command: str, **kwargs: Any) -> subprocess.Popen:
        """Start a long running shell command on the remote without waiting for it."""


class SSHSession(Session):
    """Session that runs every command through the ssh client binary."""

    def __init__(self, destination: str, extra_ssh_args: Optional[List[str]] = None):
        """Create a session for the given destination (e.g. user@host)."""
        self.destination = destination
        self.extra_ssh_args = list(extra_ssh_args or [])

    def _compose_ssh_command(self, command: str) -> List[str]:
        ssh_command = ["ssh"]

        # Only report actual errors, not things like banners or key warnings
        ssh_command.extend(["-o", "LogLevel=error"])

        # Commands never need an interactive terminal
        ssh_command.append("-T")

        ssh_command.extend(self.extra_ssh_args)
        ssh_command.append(self.destination)

        # The remote side passes the command string to the user's login shell
        ssh_command.append(command)

        return ssh_command

    def exec(self, command: str) -> SSHProcess:
        """Run a shell command on the remote and wait for it to finish."""
        try:
            proc = subprocess.run(
                self._compose_ssh_command(command),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise RuntimeError(f"failed to start ssh: {e}")

        # SSH exits with the remote command's exit code or 255 in case of failure
        if proc.returncode == 255:
            raise RuntimeError(f"ssh failed: {proc.stderr.decode().strip()}")

        return SSHProcess(proc.returncode, proc.stdout, proc.stderr)

    def popen(self, command: str, **kwargs: Any) -> subprocess.Popen:
        """Start a long running shell command on the remote without waiting for it."""
        try:
            return subprocess.Popen(self._compose_ssh_command(command), **kwargs)
        except OSError as e:
            raise RuntimeError(f"failed to start ssh: {e}")
