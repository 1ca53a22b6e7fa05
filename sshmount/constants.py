"""Module defining various global constants."""

# sshmount version
VERSION = "1.0.0"

# Special exit code for when sshmount itself fails.
SSHMOUNT_ERROR_CODE = 254

# Character that introduces a home directory in a target path (~ or ~user).
HOME_SHORTHAND = "~"

# Non-whitespace terminator appended to remote output to preserve trailing spaces.
OUTPUT_SENTINEL = "-"

# Tool that has to be installed on the remote to mount the served directory.
DEFAULT_TOOL = "sshfs"
