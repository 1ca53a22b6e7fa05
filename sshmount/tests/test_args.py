import pytest

from sshmount.args import Arguments


def test_no_args():
    with pytest.raises(SystemExit):
        Arguments.parse([])


def test_source_and_remote():
    args = Arguments.parse(["./src", "user@host:~/mnt/data"])

    assert args.source == "./src"
    assert args.destination == "user@host"
    assert args.target == "~/mnt/data"


def test_target_with_colon():
    args = Arguments.parse(["src", "host:/mnt/a:b"])

    assert args.destination == "host"
    assert args.target == "/mnt/a:b"


def test_empty_target_is_home():
    args = Arguments.parse(["src", "host:"])

    assert args.target == "~"


def test_remote_without_target():
    with pytest.raises(SystemExit):
        Arguments.parse(["src", "host"])


def test_remote_without_destination():
    with pytest.raises(SystemExit):
        Arguments.parse(["src", ":/mnt"])


def test_defaults():
    args = Arguments.parse(["src", "host:/mnt"])

    assert args.extra_ssh_args == []
    assert args.config == "~/.sshmount/config"
    assert args.uid_mapping == {}
    assert args.gid_mapping == {}
    assert not args.debug


def test_extra_ssh_args():
    args = Arguments.parse(["--ssh=-p 2222 -i 'my key'", "src", "host:/mnt"])

    assert args.extra_ssh_args == ["-p", "2222", "-i", "my key"]


def test_id_mappings():
    args = Arguments.parse(
        [
            "--uid-map=1000:1001",
            "--uid-map=0:0",
            "--gid-map=100:200",
            "src",
            "host:/mnt",
        ]
    )

    assert args.uid_mapping == {1000: 1001, 0: 0}
    assert args.gid_mapping == {100: 200}


@pytest.mark.parametrize("mapping", ["1000", "a:b", "1:2:3"])
def test_invalid_id_mapping(mapping):
    with pytest.raises(SystemExit):
        Arguments.parse([f"--uid-map={mapping}", "src", "host:/mnt"])
