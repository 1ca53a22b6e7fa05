"""Module for creating the missing part of a mount target and handing it to the user."""

from typing import Tuple

from sshmount.commands import privileged, quote, run_cmd, run_string_cmd
from sshmount.logger import log
from sshmount.paths import first_segment
from sshmount.ssh import Session


def make_target_dir(
    session: Session,
    root: str,
    relative: str,
    sudo: str = "sudo",
    shell: str = "/bin/bash",
) -> None:
    """Create the relative path and all of its parents within an existing root."""
    if not relative:
        return

    log.debug(f"creating {relative} in {root}")

    run_cmd(
        session,
        privileged(f"cd {quote(root)} && mkdir -p {quote(relative)}", sudo, shell),
    )


def set_owner(
    session: Session,
    root: str,
    relative: str,
    sudo: str = "sudo",
    shell: str = "/bin/bash",
) -> None:
    """
    Give the connecting user ownership of a newly created path within root.

    Only the first directory of the relative path (and everything below it) changes
    owner. The root and its ancestors existed before and are left alone.
    """
    if not relative:
        return

    user = run_string_cmd(session, "id -nu")
    group = run_string_cmd(session, "id -ng")

    top_dir = first_segment(relative)

    log.debug(f"changing owner of {top_dir} in {root} to {user}:{group}")

    run_cmd(
        session,
        privileged(
            f"cd {quote(root)} && chown -R {quote(f'{user}:{group}')} {quote(top_dir)}",
            sudo,
            shell,
        ),
    )


def _parse_id(session: Session, command: str) -> int:
    output = run_cmd(session, command)

    log.debug(f"`{command}` = {output.strip()}")

    try:
        return int(output)
    except ValueError as e:
        raise RuntimeError(f"unexpected output from `{command}`: {output!r}") from e


def default_ids(session: Session) -> Tuple[int, int]:
    """Get the numeric user and group id of the connecting user."""
    return _parse_id(session, "id -u"), _parse_id(session, "id -g")
