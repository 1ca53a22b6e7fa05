"""
Module with the file transfer server that serves a local directory to the remote.

The SFTP protocol itself is not implemented here. SftpServer pairs two existing
programs: OpenSSH's sftp-server, which serves the local directory over stdin/stdout,
and sshfs on the remote, which in slave mode speaks SFTP over its own stdin/stdout and
mounts the result. The output of each is connected to the input of the other, with the
SSH session carrying the remote half.
"""

from abc import ABC, abstractmethod
import contextlib
import os
import subprocess
import threading
from typing import Dict, List, Optional

from sshmount.commands import quote
from sshmount.config import ServerConfig
from sshmount.constants import DEFAULT_TOOL
from sshmount.logger import log
from sshmount.ssh import Session


IdMap = Dict[int, int]


class Server(ABC):
    """Base class for a server that serves a source directory at a remote target."""

    def __init__(
        self,
        session: Session,
        source: str,
        target: str,
        gid_map: IdMap,
        uid_map: IdMap,
        default_uid: int,
        default_gid: int,
    ):
        """Take ownership of the session and remember what to serve where."""
        self._session = session

        self.source = source
        self.target = target

        self.gid_map = gid_map
        self.uid_map = uid_map
        self.default_uid = default_uid
        self.default_gid = default_gid

    @abstractmethod
    def run(self) -> None:
        """Serve until stopped or until the connection ends."""

    @abstractmethod
    def stop(self) -> None:
        """Request the server to stop, which can safely be done more than once."""


class SftpServer(Server):
    """Server that connects a local sftp-server to sshfs running on the remote."""

    def __init__(
        self,
        session: Session,
        source: str,
        target: str,
        gid_map: IdMap,
        uid_map: IdMap,
        default_uid: int,
        default_gid: int,
        config: Optional[ServerConfig] = None,
        sudo: str = "sudo",
        tool: str = DEFAULT_TOOL,
    ):
        """Create the server, see Server for the arguments."""
        super().__init__(
            session,
            os.path.abspath(source),
            target,
            gid_map,
            uid_map,
            default_uid,
            default_gid,
        )

        self._config = config or ServerConfig()
        self._sudo = sudo
        self._tool = tool

        self._stop_event = threading.Event()

    def _compose_sshfs_command(self) -> str:
        """Compose the command for mounting the target with sshfs on the remote."""
        # Everything served is owned by the local user, so that's the id to map
        uid = self.uid_map.get(os.getuid(), self.default_uid)
        gid = self.gid_map.get(os.getgid(), self.default_gid)

        options: List[str] = [
            "slave",
            "transform_symlinks",
            "allow_other",
            f"uid={uid}",
            f"gid={gid}",
        ]
        options.extend(self._config.options)

        command = (
            f"{self._tool} -o {quote(','.join(options))} "
            f"{quote(':' + self.source)} {quote(self.target)}"
        )

        if self._sudo:
            command = f"{self._sudo} {command}"

        return command

    def run(self) -> None:
        """Serve until stopped or until either side of the connection exits."""
        if self._stop_event.is_set():
            return

        remote = self._session.popen(
            self._compose_sshfs_command(),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
        )

        try:
            local = subprocess.Popen(
                [self._config.sftp_server], stdin=remote.stdout, stdout=remote.stdin
            )
        except OSError as e:
            self._terminate(remote)
            raise RuntimeError(f"failed to start sftp-server: {e}")
        finally:
            # The children hold their own copies of the pipes
            remote.stdout.close()
            remote.stdin.close()

        try:
            while not self._stop_event.wait(self._config.poll_interval):
                if remote.poll() is not None or local.poll() is not None:
                    break
        finally:
            self._terminate(local)
            self._terminate(remote)

        log.info(
            f"stopped serving {self.source} "
            f"({self._tool} exited with {remote.returncode}, "
            f"sftp-server exited with {local.returncode})"
        )

    def stop(self) -> None:
        """Request the server to stop, which can safely be done more than once."""
        self._stop_event.set()

    @staticmethod
    def _terminate(proc: subprocess.Popen) -> None:
        # https://bugs.python.org/issue40550
        with contextlib.suppress(ProcessLookupError):
            proc.terminate()

        proc.wait()
