"""
Module that implements preparing a remote directory as mount point and serving it.

A Mount takes an SSH session and a target on the remote that may not exist yet. It
creates whatever part of the target is missing, gives the connecting user ownership of
it and then hands the session over to a server that serves the source directory at the
target on a background thread. Preparing happens synchronously in the constructor, so
an existing Mount object is always serving (or done serving).
"""

import functools
import threading
from typing import Callable, Optional

import fasteners

from sshmount.commands import quote, run_cmd
from sshmount.config import Config
from sshmount.constants import DEFAULT_TOOL
from sshmount.events import Event, EventQueue
from sshmount.logger import log
from sshmount.paths import expand_home, split_path
from sshmount.provisioning import default_ids, make_target_dir, set_owner
from sshmount.server import IdMap, Server, SftpServer
from sshmount.ssh import Session, SSHProcess


ServerFactory = Callable[[Session, str, str, IdMap, IdMap, int, int], Server]


class ToolMissingError(RuntimeError):
    """Exception raised when the tool needed for mounting is not on the remote."""

    def __init__(self, tool: str = DEFAULT_TOOL) -> None:
        """Instantiate the exception for the missing tool."""
        super().__init__(f"'{tool}' is not installed on the remote")

        self.tool = tool


def check_tool_exists(session: Session, tool: str = DEFAULT_TOOL) -> None:
    """Check that the tool is installed on the remote or raise ToolMissingError."""

    def error_handler(proc: SSHProcess) -> None:
        log.warning(
            f"unable to determine if '{tool}' is installed: {proc.read_std_error()}"
        )
        raise ToolMissingError(tool)

    run_cmd(session, f"command -v {quote(tool)}", error_handler)


def _serve(server: Server, events: EventQueue, target: str) -> None:
    """Run the server until it stops, reporting the outcome as events."""
    log.info(f"connected, serving at {target}")
    events.notify(Event.SERVER_START)

    try:
        server.run()
    except Exception as e:
        log.error(f"server failed: {e}")
        events.exception(e)
    else:
        log.info(f"stopped serving at {target}")
        events.notify(Event.SERVER_STOP)


class Mount:
    """A source directory served at a target directory on the remote."""

    def __init__(
        self,
        session: Session,
        source: str,
        target: str,
        gid_map: IdMap,
        uid_map: IdMap,
        config: Optional[Config] = None,
        server_factory: Optional[ServerFactory] = None,
        lock_path: Optional[str] = None,
    ):
        """
        Prepare the target on the remote and start serving the source there.

        Blocks until the target is ready. Any failure while preparing is raised from
        here and leaves nothing running. The session is owned by the server afterwards
        and must not be used by the caller anymore.

        If a lock path is given, preparing is serialized with other processes using the
        same lock file.
        """
        self._server: Optional[Server] = None
        self._thread: Optional[threading.Thread] = None
        self._joined = False
        self._lock = threading.Lock()

        self._config = config or Config()
        self.events = EventQueue()

        # Expanded while preparing
        self.target = target

        if server_factory is None:
            server_factory = functools.partial(
                SftpServer,
                config=self._config.server,
                sudo=self._config.mount.sudo,
                tool=self._config.mount.tool,
            )

        if lock_path:
            with fasteners.InterProcessLock(lock_path):
                self._server = self._prepare(
                    session, source, target, gid_map, uid_map, server_factory
                )
        else:
            self._server = self._prepare(
                session, source, target, gid_map, uid_map, server_factory
            )

        # The thread must not hold a reference to the mount, so that dropping the mount
        # stops it through __del__
        self._thread = threading.Thread(
            target=_serve, args=(self._server, self.events, self.target), daemon=True
        )
        self._thread.start()

    def _prepare(
        self,
        session: Session,
        source: str,
        target: str,
        gid_map: IdMap,
        uid_map: IdMap,
        server_factory: ServerFactory,
    ) -> Server:
        """Create the missing part of the target and construct the server for it."""
        log.debug(f"preparing mount (source = {source}, target = {target})")

        sudo = self._config.mount.sudo
        shell = self._config.mount.shell

        check_tool_exists(session, self._config.mount.tool)

        self.target = expand_home(session, target)

        existing, missing = split_path(session, self.target, sudo, shell)

        # Only the part of the path that doesn't exist yet is created and handed over
        make_target_dir(session, existing, missing, sudo, shell)
        set_owner(session, existing, missing, sudo, shell)

        default_uid, default_gid = default_ids(session)

        return server_factory(
            session, source, self.target, gid_map, uid_map, default_uid, default_gid
        )

    @property
    def running(self) -> bool:
        """Whether the server is still running on its thread."""
        return self._thread is not None and self._thread.is_alive()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the server to stop on its own and return if it did."""
        if self._thread is not None:
            self._thread.join(timeout)

        return not self.running

    def stop(self) -> None:
        """
        Stop the server and wait for its thread to exit.

        Calling this more than once, concurrently, or after the server already stopped
        by itself is fine. When called from the server thread itself the server is only
        signalled, since a thread can't wait for itself.
        """
        if self._thread is threading.current_thread():
            if self._server is not None:
                self._server.stop()
            return

        with self._lock:
            if self._server is not None:
                self._server.stop()

            if self._thread is None or self._joined:
                return

            self._thread.join()
            self._joined = True

    def __enter__(self) -> "Mount":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def __del__(self) -> None:
        # The constructor may have failed before any of the attributes were set
        if hasattr(self, "_lock"):
            self.stop()
