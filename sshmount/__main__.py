"""
Module implementing the command-line interface and invoking the main logic of sshmount.

sshmount makes a local directory available on a remote machine. It prepares the target
directory on the remote over SSH, creating any part of it that's missing, and then
serves the local directory there until interrupted.
"""

import logging
import os
import signal
import sys
from typing import List, NoReturn, Optional

import sshmount.constants as constants
from sshmount.config import Config
from sshmount.events import Event
from sshmount.logger import log
from sshmount.mount import Mount, ToolMissingError
from sshmount.ssh import SSHSession
from .args import Arguments


def main(arguments: Optional[List[str]] = None) -> NoReturn:
    """
    Mount a local directory on a remote machine with the given arguments.

    Defaults to parsing command-line arguments from sys.argv if none are specified.
    """
    # Parse command-line arguments.
    args = Arguments.parse(arguments)

    # Configure debug logging.
    if args.debug:
        log.setLevel(logging.DEBUG)
    else:
        log.setLevel(logging.INFO)

    config = Config.load(os.path.expanduser(args.config))

    session = SSHSession(args.destination, args.extra_ssh_args)

    try:
        mount = Mount(
            session,
            args.source,
            args.target,
            args.gid_mapping,
            args.uid_mapping,
            config=config,
            lock_path=config.mount.lock_path,
        )
    except KeyboardInterrupt:
        sys.exit(128 + signal.SIGINT)
    except ToolMissingError as e:
        log.error(f"{e}, install it on {args.destination} to be able to mount")
        sys.exit(constants.SSHMOUNT_ERROR_CODE)
    except Exception as e:
        log.error(f"failed to mount: {e}")
        sys.exit(constants.SSHMOUNT_ERROR_CODE)

    try:
        mount.events.expect(Event.SERVER_START)
        mount.events.expect(Event.SERVER_STOP)
        exit_code = 0
    except KeyboardInterrupt:
        exit_code = 128 + signal.SIGINT
    except Exception as e:
        log.error(f"failed to serve: {e}")
        exit_code = constants.SSHMOUNT_ERROR_CODE
    finally:
        mount.stop()

    sys.exit(exit_code)
