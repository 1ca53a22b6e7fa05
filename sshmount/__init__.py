"""Mount a local directory on a remote machine over SSH."""
