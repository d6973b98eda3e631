from __future__ import annotations

import errno
import os
import socket
import sys
from dataclasses import dataclass

from sockchown.errors import BindError, RemovalError, SocketCreationError


# sizeof(struct sockaddr_un.sun_path)
SUN_PATH_MAX = 104 if sys.platform == "darwin" or "bsd" in sys.platform else 108


@dataclass
class SocketEndpoint:
    path: str
    sock: socket.socket

    def fileno(self) -> int:
        return self.sock.fileno()

    def close(self) -> None:
        if self.sock.fileno() >= 0:
            self.sock.close()


def provision_socket(path: str) -> SocketEndpoint:
    """
    Create an AF_UNIX stream socket and bind it to `path`.

    The descriptor is validated before the bind. An existing path is never
    unlinked first: binding onto it fails with BindError.
    """
    try:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    except OSError as e:
        raise SocketCreationError(path, e) from e

    try:
        if len(os.fsencode(path)) > SUN_PATH_MAX:
            raise OSError(errno.ENAMETOOLONG, os.strerror(errno.ENAMETOOLONG), path)
        sock.bind(path)
    except OSError as e:
        sock.close()
        raise BindError(path, e) from e

    return SocketEndpoint(path=path, sock=sock)


def remove_socket(path: str) -> None:
    try:
        os.remove(path)
    except OSError as e:
        raise RemovalError(path, e) from e
