"""Module defining the command-line arguments and providing a parser for them."""

from __future__ import annotations

import argparse
import shlex
from typing import Dict, List, Optional, Tuple

from sshmount.constants import VERSION


class Arguments(argparse.Namespace):
    """Parsed command-line arguments."""

    source: str
    remote: str
    destination: str
    target: str

    extra_ssh_args: List[str]

    config: str

    uid_map: List[Tuple[int, int]]
    gid_map: List[Tuple[int, int]]

    debug: bool

    @property
    def uid_mapping(self) -> Dict[int, int]:
        """User id mapping from local to remote as dict."""
        return dict(self.uid_map)

    @property
    def gid_mapping(self) -> Dict[int, int]:
        """Group id mapping from local to remote as dict."""
        return dict(self.gid_map)

    @classmethod
    def parse(cls, args: Optional[List[str]] = None) -> Arguments:
        """
        Parse command-line arguments from the given list of strings.

        Defaults to sys.argv if none are specified.
        """
        parsed = cls._get_parser().parse_args(args, namespace=cls())

        # Split destination:target on the first colon after the host
        parsed.destination, parsed.target = cls._split_remote(parsed.remote)

        return parsed

    @classmethod
    def _get_parser(cls) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Mount a local directory on a remote machine over SSH.",
            usage="sshmount [option...] source destination:target",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {VERSION}",
            help="show the program version",
        )

        # Primary arguments
        parser.add_argument("source", type=str, help="local directory to mount")
        parser.add_argument(
            "remote",
            type=cls._parse_remote,
            help="remote host and directory to mount at (e.g. host:~/shared)",
        )

        # Flag to pass additional options to SSH
        parser.add_argument(
            "--ssh",
            type=cls._parse_extra_args,
            help="additional arguments to pass to SSH",
            dest="extra_ssh_args",
            default=[],
        )

        # Path to (optional) config file
        parser.add_argument(
            "--config",
            type=str,
            help="path to config file (default is ~/.sshmount/config)",
            default="~/.sshmount/config",
        )

        # Ownership mappings passed to the server
        parser.add_argument(
            "--uid-map",
            type=cls._parse_id_mapping,
            action="append",
            help="map a local user id to a remote one (local:remote)",
            default=[],
        )
        parser.add_argument(
            "--gid-map",
            type=cls._parse_id_mapping,
            action="append",
            help="map a local group id to a remote one (local:remote)",
            default=[],
        )

        # Enable debug output for development
        parser.add_argument(
            "--debug", action="store_true", help="enable debug information"
        )

        return parser

    @staticmethod
    def _parse_extra_args(arg: str) -> List[str]:
        return shlex.split(arg)

    @staticmethod
    def _parse_remote(arg: str) -> str:
        if ":" not in arg or arg.startswith(":"):
            raise argparse.ArgumentTypeError("expected destination:target")
        return arg

    @staticmethod
    def _split_remote(arg: str) -> Tuple[str, str]:
        destination, target = arg.split(":", 1)

        # An empty target means the home directory, like with scp
        return destination, target or "~"

    @staticmethod
    def _parse_id_mapping(arg: str) -> Tuple[int, int]:
        try:
            local_id, remote_id = arg.split(":")
            return int(local_id), int(remote_id)
        except ValueError:
            raise argparse.ArgumentTypeError("expected local:remote id pair")
