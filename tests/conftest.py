from __future__ import annotations

import grp
import os
import pwd
from pathlib import Path

import pytest


@pytest.fixture
def own_names() -> tuple[str, str]:
    """User and group names of the running process."""
    try:
        user = pwd.getpwuid(os.getuid()).pw_name
        group = grp.getgrgid(os.getgid()).gr_name
    except KeyError:
        pytest.skip("running uid/gid has no passwd/group entry")
    return user, group


@pytest.fixture
def sock_path(tmp_path: Path) -> str:
    return str(tmp_path / "t.sock")


@pytest.fixture
def nobody_names() -> tuple[str, str]:
    try:
        pw = pwd.getpwnam("nobody")
        group = grp.getgrgid(pw.pw_gid).gr_name
    except KeyError:
        pytest.skip("no nobody user/group on this system")
    return "nobody", group
