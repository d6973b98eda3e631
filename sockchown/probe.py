from __future__ import annotations

import os
from dataclasses import dataclass

from sockchown.errors import ChownError, StatError
from sockchown.ipc import SocketEndpoint
from sockchown.permissions import Identity


@dataclass(frozen=True)
class Ownership:
    uid: int
    gid: int

    def matches(self, identity: Identity) -> bool:
        return self.uid == identity.uid and self.gid == identity.gid

    def as_dict(self) -> dict[str, int]:
        return {"uid": self.uid, "gid": self.gid}


class OwnershipProbe:
    """
    Ownership changes against one bound socket.

    fchown() on a socket descriptor targets the socket inode, not the
    filesystem entry, so it can succeed while the on-disk owner stays put.
    Read-back always goes through the path.
    """

    def __init__(self, endpoint: SocketEndpoint, identity: Identity) -> None:
        self.endpoint = endpoint
        self.identity = identity

    def change_by_descriptor(self) -> None:
        try:
            os.fchown(self.endpoint.fileno(), self.identity.uid, self.identity.gid)
        except OSError as e:
            raise ChownError(self.endpoint.path, "fchown", e) from e

    def change_by_path(self) -> None:
        try:
            os.chown(self.endpoint.path, self.identity.uid, self.identity.gid)
        except OSError as e:
            raise ChownError(self.endpoint.path, "chown", e) from e

    def read_back(self) -> Ownership:
        try:
            st = os.stat(self.endpoint.path)
        except OSError as e:
            raise StatError(self.endpoint.path, e) from e
        return Ownership(uid=st.st_uid, gid=st.st_gid)
