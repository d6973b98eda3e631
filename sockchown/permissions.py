from __future__ import annotations

import grp
import pwd
from dataclasses import dataclass

from sockchown.errors import SockChownError


@dataclass(frozen=True)
class Identity:
    """
    Numeric owner requested for the socket file.

    Resolved once from a user name and a group name via the passwd and group
    databases, then used unchanged for both ownership-change attempts.
    """

    uid: int
    gid: int

    def as_dict(self) -> dict[str, int]:
        return {"uid": self.uid, "gid": self.gid}


class ResolutionError(SockChownError):
    kind = "identity"

    def __init__(self, user: str, group: str) -> None:
        self.user = user
        self.group = group
        super().__init__()

    def describe(self) -> str:
        return f"Failed to obtain uid:gid of {self.user}:{self.group}"

    def describe_detailed(self) -> str:
        return self.describe()


class UnknownUser(ResolutionError):
    kind = "user"

    def describe_detailed(self) -> str:
        return f"Failed to obtain uid of {self.user}: no such user"


class UnknownGroup(ResolutionError):
    kind = "group"

    def describe_detailed(self) -> str:
        return f"Failed to obtain gid of {self.group}: no such group"


def resolve_identity(user: str, group: str) -> Identity:
    if not user:
        raise UnknownUser(user, group)
    try:
        pw = pwd.getpwnam(user)
    except (KeyError, ValueError):
        raise UnknownUser(user, group) from None

    if not group:
        raise UnknownGroup(user, group)
    try:
        gr = grp.getgrnam(group)
    except (KeyError, ValueError):
        raise UnknownGroup(user, group) from None

    return Identity(uid=pw.pw_uid, gid=gr.gr_gid)
