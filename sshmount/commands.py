"""
Module for running shell commands on the remote and interpreting their results.

All remote work is expressed as shell command strings, so any value that ends up in a
command (paths, user names) must go through quote() first. Targets come straight from
the user and are never trusted to be free of spaces or shell syntax.
"""

import shlex
from typing import Callable, Optional

from sshmount.constants import OUTPUT_SENTINEL
from sshmount.logger import log, summarize
from sshmount.ssh import Session, SSHProcess


ErrorHandler = Callable[[SSHProcess], None]


class RemoteCommandError(RuntimeError):
    """Exception raised when a remote command exits with a non-zero status."""

    def __init__(self, stderr: str, command: str = "", exit_code: int = 1) -> None:
        """Instantiate the exception with the output of the failed command."""
        super().__init__(stderr)

        self.stderr = stderr
        self.command = command
        self.exit_code = exit_code


def quote(value: str) -> str:
    """Quote a value for safe interpolation into a POSIX shell command."""
    return shlex.quote(value)


def privileged(script: str, sudo: str = "sudo", shell: str = "/bin/bash") -> str:
    """
    Compose a command that runs a shell script with elevated privileges.

    The script is passed as a single quoted argument, so it can use variables and
    redirections without them being evaluated by the outer shell. An empty sudo prefix
    runs the script with the privileges of the connecting user.
    """
    command = f"{shell} -c {quote(script)}"

    if sudo:
        command = f"{sudo} {command}"

    return command


def _run(
    session: Session, command: str, error_handler: Optional[ErrorHandler]
) -> SSHProcess:
    proc = session.exec(command)

    log.debug(f"`{command}` exited with {proc.exit_code}: {summarize(proc.stdout)}")

    if proc.exit_code != 0:
        if error_handler is not None:
            error_handler(proc)

        raise RemoteCommandError(proc.read_std_error(), command, proc.exit_code)

    return proc


def run_cmd(
    session: Session, command: str, error_handler: Optional[ErrorHandler] = None
) -> str:
    """
    Run a command on the session and return its stdout.

    A non-zero exit code raises RemoteCommandError with the stderr of the command,
    unless an error handler is given. The handler receives the full result and is
    expected to raise a more specific exception.
    """
    return _run(session, command, error_handler).read_std_output()


def strip_sentinel(raw: bytes) -> str:
    """
    Remove the sentinel envelope from the output of a wrapped command.

    Trailing whitespace after the sentinel (the final newline) is stripped first,
    then the sentinel itself, which leaves any trailing spaces of the actual output.
    """
    output = raw.decode(errors="replace").rstrip()

    if output.endswith(OUTPUT_SENTINEL):
        output = output[: -len(OUTPUT_SENTINEL)]

    return output


def run_string_cmd(session: Session, command: str) -> str:
    """
    Run a command whose output can end in significant whitespace and return it.

    Plain output capture can't distinguish trailing spaces of the value from those of
    the surrounding output, so a sentinel is printed right after the command output
    and removed afterwards. The exit status of the command itself is preserved.
    """
    # Unlike echo `cmd`-, this keeps internal and trailing spaces as they are and
    # fails when the command fails
    wrapped = f"out=\"$({command})\" && printf '%s{OUTPUT_SENTINEL}\\n' \"$out\""

    return strip_sentinel(_run(session, wrapped, None).stdout)
