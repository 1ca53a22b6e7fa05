"""Module with session fixtures and flags to enable tests against a real SSH host."""

import subprocess

import pytest

from sshmount.config import Config
from sshmount.ssh import Session, SSHProcess


def pytest_addoption(parser):
    parser.addoption(
        "--remote-host",
        action="store",
        default=None,
        help="Run tests against this SSH destination (needs sshfs and sudo there)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "remote: mark test as requiring an SSH host")


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--remote-host"):
        skip_remote = pytest.mark.skip(reason="only runs with --remote-host option")

        for item in items:
            if "remote" in item.keywords:
                item.add_marker(skip_remote)


class LocalSession(Session):
    """Session that runs commands with the local shell, starting in a fake home."""

    def __init__(self, home):
        self.home = str(home)
        self.commands = []

    def exec(self, command):
        self.commands.append(command)

        proc = subprocess.run(
            command,
            shell=True,
            cwd=self.home,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )

        return SSHProcess(proc.returncode, proc.stdout, proc.stderr)

    def popen(self, command, **kwargs):
        self.commands.append(command)

        return subprocess.Popen(command, shell=True, cwd=self.home, **kwargs)


class SleepingSession(LocalSession):
    """Session whose remote side never exits by itself."""

    def popen(self, command, **kwargs):
        self.commands.append(command)
        # exec to make sure that sleep itself receives the termination signal
        return super().popen("exec sleep 10", **kwargs)


class ScriptedSession(Session):
    """Session that answers commands containing a fragment with a canned result."""

    def __init__(self):
        self.responses = []
        self.commands = []

    def respond(self, fragment, exit_code=0, stdout=b"", stderr=b""):
        self.responses.append((fragment, SSHProcess(exit_code, stdout, stderr)))

    def exec(self, command):
        self.commands.append(command)

        for fragment, proc in self.responses:
            if fragment in command:
                return proc

        return SSHProcess(0)

    def popen(self, command, **kwargs):
        raise NotImplementedError()


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def local_session(home):
    return LocalSession(home)


@pytest.fixture
def sleeping_session(home):
    return SleepingSession(home)


@pytest.fixture
def scripted_session():
    return ScriptedSession()


@pytest.fixture
def local_config(tmp_path):
    """Config for running everything unprivileged with the local shell."""
    config = Config()
    config.mount.sudo = ""
    config.mount.shell = "/bin/sh"
    config.mount.lock_path = str(tmp_path / "lock" / "mount.lock")
    return config
