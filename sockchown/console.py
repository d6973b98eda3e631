from __future__ import annotations

import json
import sys
from typing import Any, Optional, TextIO

from sockchown.bus import Bus, Event


class ConsoleReporter:
    """
    Renders bus events as the tool's progress output.

    Progress goes to stdout; system error descriptions go to stderr in
    perror form.
    """

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> None:
        self._out = out
        self._err = err

    def attach(self, bus: Bus) -> None:
        bus.subscribe("*", self.on_event)

    def _write_out(self, line: str) -> None:
        (self._out or sys.stdout).write(line + "\n")

    def _write_err(self, line: str) -> None:
        stream = self._err or sys.stderr
        stream.write(line + "\n")
        stream.flush()

    def on_event(self, ev: Event) -> None:
        p = ev.payload
        if ev.type == "identity.failed":
            self._write_out(p["message"])
        elif ev.type == "chown.calling":
            self._write_out(f"Calling {p['variant']}({p['target']}, {p['uid']}, {p['gid']})")
        elif ev.type == "chown.succeeded":
            self._write_out(f"{p['variant']}() SUCCESS")
        elif ev.type == "ownership.observed":
            self._write_out(f"New uid:gid ({p['uid']}:{p['gid']})")
        elif ev.type == "ownership.mismatch":
            self._write_out("ERROR: Failed to properly set uid or gid.")
        elif ev.type == "cleanup.removing":
            self._write_out(f"Removing {p['path']}.")
        elif ev.type == "cleanup.done":
            self._write_out("All done")
        elif ev.type.endswith(".failed"):
            # Flush progress first so stderr lines land after the step they belong to.
            (self._out or sys.stdout).flush()
            self._write_err(p["error"])


def render_json(summary: dict[str, Any], out: Optional[TextIO] = None) -> None:
    data = json.dumps(summary, separators=(",", ":"), ensure_ascii=False)
    (out or sys.stdout).write(data + "\n")
