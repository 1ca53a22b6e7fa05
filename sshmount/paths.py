"""
Module for resolving a mount target on the remote into what exists and what doesn't.

There is no local view of the remote file system, so everything here is answered by
the remote shell: home directories by pwd and the password database, and the longest
existing ancestor of the target by a loop that strips path components until it hits a
directory.
"""

import posixpath
from typing import Tuple

from sshmount.commands import privileged, quote, run_string_cmd
from sshmount.constants import HOME_SHORTHAND
from sshmount.logger import log
from sshmount.ssh import Session


class UnknownUserError(RuntimeError):
    """Exception raised when a target refers to the home of an unknown user."""

    def __init__(self, username: str) -> None:
        """Instantiate the exception for the given user name."""
        super().__init__(f"user {username} does not exist or does not have a home")

        self.username = username


def expand_home(session: Session, target: str) -> str:
    """
    Expand a leading ~ or ~user in the target to the home directory on the remote.

    Targets without the shorthand are returned unchanged.
    """
    if not target.startswith(HOME_SHORTHAND):
        return target

    # Position of the slash that ends the (possibly empty) user name
    pos = target.find("/", 1)
    if pos == -1:
        pos = len(target)

    if pos == 1:
        # A fresh remote shell starts in the home directory of the connecting user
        home = run_string_cmd(session, "pwd")
    else:
        username = target[1:pos]
        home = run_string_cmd(
            session, f"getent passwd {quote(username)} | cut -d : -f 6"
        )

        if not home:
            raise UnknownUserError(username)

    # The remainder keeps its leading slash
    expanded_target = home + target[pos:]

    log.debug(f"expanded {target} to {expanded_target}")

    return expanded_target


def first_segment(relative: str) -> str:
    """Return the first component of a relative path."""
    return relative.split("/", 1)[0]


def split_path(
    session: Session, target: str, sudo: str = "sudo", shell: str = "/bin/bash"
) -> Tuple[str, str]:
    """
    Split a target into its longest existing directory and the part to be created.

    The existing part is absolute and ends with a slash. The missing part is relative
    to it and is empty if the target already exists. Searching for the existing part
    is done with elevated privileges so that it also works below directories that the
    connecting user can't traverse.
    """
    if posixpath.isabs(target):
        absolute = target
    else:
        absolute = run_string_cmd(session, "pwd") + "/" + target

    absolute = posixpath.normpath(absolute)

    script = (
        f"P={quote(absolute)}; "
        'while [ ! -d "$P/" ]; do P="${P%/*}"; done; '
        'echo "${P%/}/"'
    )
    existing = run_string_cmd(session, privileged(script, sudo, shell))

    missing = posixpath.relpath(absolute, existing)
    if missing == ".":
        missing = ""

    log.debug(f"split {target} into existing {existing} and missing {missing}")

    return existing, missing
