from __future__ import annotations

import os
from typing import Optional


class SockChownError(Exception):
    """
    Base error for every step of the probe sequence.

    Subclasses set their state first, then call this __init__; the exception
    message is whatever describe() renders.
    """

    def __init__(self) -> None:
        super().__init__(self.describe())

    def describe(self) -> str:
        return "sockchown failed"


class PathError(SockChownError):
    """
    A failed system call against the socket path.

    Rendered in perror form: "Failed to <action> <path>: <strerror>".
    """

    action = "run"

    def __init__(self, path: str, cause: Optional[OSError] = None) -> None:
        self.path = path
        self.cause = cause
        super().__init__()

    @property
    def strerror(self) -> str:
        if self.cause is None:
            return "Unknown error"
        if self.cause.errno is not None:
            return os.strerror(self.cause.errno)
        return str(self.cause)

    def describe(self) -> str:
        return f"Failed to {self.action} {self.path}: {self.strerror}"


class SocketCreationError(PathError):
    action = "create socket"


class BindError(PathError):
    action = "bind"


class ChownError(PathError):
    def __init__(self, path: str, variant: str, cause: Optional[OSError] = None) -> None:
        self.variant = variant
        super().__init__(path, cause)

    @property
    def action(self) -> str:  # type: ignore[override]
        return self.variant


class StatError(PathError):
    action = "stat"


class RemovalError(PathError):
    action = "remove"


class ConfigError(Exception):
    pass
