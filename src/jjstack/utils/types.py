"""Type aliases and constants for jjstack."""

import logging
from typing import List, NewType

# Type aliases
BranchName = NewType("BranchName", str)
ChangeId = NewType("ChangeId", str)
CommitId = NewType("CommitId", str)
TreeId = NewType("TreeId", str)
PathName = NewType("PathName", str)
CmdArgs = NewType("CmdArgs", List[str])

# Identity mapping
CHANGE_ID_HASH_LENGTH = 12
SHORT_CHANGE_ID_LENGTH = 8

# Private ref namespace used to mirror remote branches without touching refs/heads
REMOTE_MIRROR_NAMESPACE = "refs/jjstack/remotes"
NULL_COMMIT = CommitId("0" * 40)

MAX_SSH_MUX_LIFETIME = 120  # 2 minutes ought to be enough for anybody ;-)

# Log levels
LOGLEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
