import os

import pytest

from sshmount.commands import RemoteCommandError
from sshmount.provisioning import default_ids, make_target_dir, set_owner


def test_make_target_dir(local_session, home):
    make_target_dir(local_session, f"{home}/", "a/b/c", "", "/bin/sh")

    assert (home / "a").is_dir()
    assert (home / "a" / "b").is_dir()
    assert (home / "a" / "b" / "c").is_dir()


def test_make_target_dir_nothing_missing(scripted_session):
    make_target_dir(scripted_session, "/r/", "")

    assert scripted_session.commands == []


def test_make_target_dir_quoting(local_session, home):
    make_target_dir(local_session, f"{home}/", "x; touch pwned/y", "", "/bin/sh")

    assert (home / "x; touch pwned" / "y").is_dir()
    assert not (home / "pwned").exists()


def test_make_target_dir_privileged(scripted_session):
    make_target_dir(scripted_session, "/r/", "a/b")

    assert scripted_session.commands == [
        "sudo /bin/bash -c 'cd /r/ && mkdir -p a/b'"
    ]


def test_make_target_dir_failure(local_session, home):
    with pytest.raises(RemoteCommandError):
        make_target_dir(local_session, f"{home}/missing/", "a", "", "/bin/sh")


def test_set_owner(local_session, home):
    (home / "a" / "b").mkdir(parents=True)

    set_owner(local_session, f"{home}/", "a/b", "", "/bin/sh")

    for path in [home / "a", home / "a" / "b"]:
        assert path.stat().st_uid == os.getuid()
        assert path.stat().st_gid == os.getgid()


def test_set_owner_first_segment_only(scripted_session):
    scripted_session.respond("id -nu", stdout=b"alice-\n")
    scripted_session.respond("id -ng", stdout=b"staff-\n")

    set_owner(scripted_session, "/r/", "a/b/c")

    assert scripted_session.commands[-1] == (
        "sudo /bin/bash -c 'cd /r/ && chown -R alice:staff a'"
    )


def test_set_owner_nothing_missing(scripted_session):
    set_owner(scripted_session, "/r/", "")

    assert scripted_session.commands == []


def test_set_owner_failure(scripted_session):
    scripted_session.respond("id -nu", stdout=b"alice-\n")
    scripted_session.respond("id -ng", stdout=b"staff-\n")
    scripted_session.respond("chown", exit_code=1, stderr=b"not permitted")

    with pytest.raises(RemoteCommandError) as e:
        set_owner(scripted_session, "/r/", "a")

    assert e.value.stderr == "not permitted"


def test_default_ids(local_session):
    assert default_ids(local_session) == (os.getuid(), os.getgid())


def test_default_ids_malformed(scripted_session):
    scripted_session.respond("id -u", stdout=b"root\n")

    with pytest.raises(RuntimeError) as e:
        default_ids(scripted_session)

    assert isinstance(e.value.__cause__, ValueError)
    assert "id -u" in str(e.value)
