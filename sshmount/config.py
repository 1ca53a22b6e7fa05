"""Module for configuration variables with defaults that are overridable by a file."""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from dataclasses import dataclass, field
import os
import shlex
from typing import List

from sshmount.constants import DEFAULT_TOOL
from sshmount.logger import log


@dataclass
class MountConfig:
    """Configuration variables related to preparing the remote mount point."""

    tool: str = DEFAULT_TOOL

    # Prefix for commands that need elevated privileges, empty to run them as is
    sudo: str = "sudo"
    shell: str = "/bin/bash"

    lock_path: str = os.path.expanduser("~/.sshmount/mount.lock")

    @staticmethod
    def load(section: SectionProxy) -> MountConfig:
        """Load overridden variables from a section within a config file."""
        config = MountConfig()

        config.tool = section.get("tool", fallback=config.tool)
        config.sudo = section.get("sudo", fallback=config.sudo)
        config.shell = section.get("shell", fallback=config.shell)

        config.lock_path = os.path.expanduser(
            section.get("lock_path", fallback=config.lock_path)
        )

        return config


@dataclass
class ServerConfig:
    """Configuration variables related to serving the mounted directory."""

    sftp_server: str = "/usr/lib/openssh/sftp-server"

    poll_interval: float = 0.1

    # Additional options passed to sshfs on the remote
    options: List[str] = field(default_factory=list)

    @staticmethod
    def load(section: SectionProxy) -> ServerConfig:
        """Load overridden variables from a section within a config file."""
        config = ServerConfig()

        config.sftp_server = section.get("sftp_server", fallback=config.sftp_server)
        config.poll_interval = section.getfloat(
            "poll_interval", fallback=config.poll_interval
        )

        if "options" in section:
            config.options = shlex.split(section["options"])

        return config


@dataclass
class Config:
    """Configuration variables."""

    mount: MountConfig = field(default_factory=MountConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @staticmethod
    def load(filename: str) -> Config:
        """Load overridden configuration variables from a config file."""
        parser = ConfigParser()

        config = Config()

        try:
            with open(filename, "r") as f:
                parser.read_string(f.read(), filename)

            if "mount" in parser:
                config.mount = MountConfig.load(parser["mount"])
            if "server" in parser:
                config.server = ServerConfig.load(parser["server"])
        except FileNotFoundError:
            log.info(f"no config file at {filename}")
        except Exception as e:
            # An unreadable config file is not considered a fatal error since we can
            # fall back to defaults.
            log.error(f"failed to read config file {filename}: {e}")
        else:
            log.info(f"loaded config: {config}")

        return config
