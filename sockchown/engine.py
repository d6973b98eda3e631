from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from sockchown.bus import Bus
from sockchown.config import ProbeConfig, load_config
from sockchown.console import ConsoleReporter, render_json
from sockchown.errors import BindError, ChownError, ConfigError, RemovalError, SocketCreationError, StatError
from sockchown.ipc import SocketEndpoint, provision_socket, remove_socket
from sockchown.permissions import Identity, ResolutionError, resolve_identity
from sockchown.probe import OwnershipProbe


SUCCESS = 0
FAILURE = -1


@dataclass(frozen=True)
class StepResult:
    step: str
    status: int = SUCCESS
    error: Optional[str] = None
    observed: Optional[dict[str, int]] = None
    mismatch: bool = False

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


@dataclass
class RunReport:
    path: str
    identity: Optional[Identity] = None
    steps: list[StepResult] = field(default_factory=list)
    status: int = SUCCESS
    deciding_step: Optional[str] = None

    def step(self, name: str) -> Optional[StepResult]:
        for s in self.steps:
            if s.step == name:
                return s
        return None

    def summary(self) -> dict[str, Any]:
        return {
            "ok": self.status == SUCCESS,
            "status": self.status,
            "deciding_step": self.deciding_step,
            "path": self.path,
            "identity": self.identity.as_dict() if self.identity else None,
            "steps": [
                {
                    "step": s.step,
                    "status": s.status,
                    "error": s.error,
                    "observed": s.observed,
                    "mismatch": s.mismatch,
                }
                for s in self.steps
            ],
        }


class ProbeRun:
    """
    resolve -> bind -> fchown -> stat -> chown -> stat -> remove

    Every step appends a StepResult. A raised step error skips straight to
    cleanup; cleanup runs whenever a bind was attempted.
    """

    def __init__(self, cfg: ProbeConfig, bus: Bus) -> None:
        self.cfg = cfg
        self.bus = bus

    def _publish(self, type: str, **payload: Any) -> None:
        self.bus.publish(source="sockchown", type=type, payload=payload)

    def run(self, path: str, user: str, group: str) -> RunReport:
        report = RunReport(path=path)

        try:
            identity = resolve_identity(user, group)
        except ResolutionError as e:
            msg = e.describe_detailed() if self.cfg.detailed_resolution_errors else e.describe()
            report.steps.append(StepResult("resolve", FAILURE, msg))
            self._publish("identity.failed", user=user, group=group, kind=e.kind, message=msg)
            return self._finish(report)
        report.identity = identity
        report.steps.append(StepResult("resolve"))
        self._publish("identity.resolved", user=user, group=group, uid=identity.uid, gid=identity.gid)

        try:
            endpoint = provision_socket(path)
        except SocketCreationError as e:
            # Nothing was created in the filesystem namespace.
            report.steps.append(StepResult("socket", FAILURE, e.describe()))
            self._publish("socket.failed", path=path, error=e.describe())
            return self._finish(report)
        except BindError as e:
            report.steps.append(StepResult("bind", FAILURE, e.describe()))
            self._publish("bind.failed", path=path, error=e.describe())
            self._cleanup(report, None)
            return self._finish(report)
        report.steps.append(StepResult("bind"))
        self._publish("socket.bound", path=path, fd=endpoint.fileno())

        try:
            self._probe(report, OwnershipProbe(endpoint, identity))
        finally:
            self._cleanup(report, endpoint)
        return self._finish(report)

    def _probe(self, report: RunReport, probe: OwnershipProbe) -> None:
        attempts = (
            ("fchown", probe.endpoint.fileno(), probe.change_by_descriptor),
            ("chown", probe.endpoint.path, probe.change_by_path),
        )
        for variant, target, change in attempts:
            self._publish(
                "chown.calling",
                variant=variant,
                target=target,
                uid=probe.identity.uid,
                gid=probe.identity.gid,
            )
            try:
                change()
            except ChownError as e:
                report.steps.append(StepResult(variant, FAILURE, e.describe()))
                self._publish("chown.failed", variant=variant, path=e.path, error=e.describe())
                return
            report.steps.append(StepResult(variant))
            self._publish("chown.succeeded", variant=variant)

            try:
                owner = probe.read_back()
            except StatError as e:
                report.steps.append(StepResult(f"stat_after_{variant}", FAILURE, e.describe()))
                self._publish("stat.failed", path=e.path, error=e.describe())
                return
            self._publish("ownership.observed", variant=variant, uid=owner.uid, gid=owner.gid)

            mismatch = not owner.matches(probe.identity)
            status = SUCCESS
            if mismatch:
                self._publish(
                    "ownership.mismatch",
                    variant=variant,
                    expected=probe.identity.as_dict(),
                    observed=owner.as_dict(),
                )
                if self.cfg.fail_on_mismatch:
                    status = FAILURE
            report.steps.append(
                StepResult(f"stat_after_{variant}", status, observed=owner.as_dict(), mismatch=mismatch)
            )

    def _cleanup(self, report: RunReport, endpoint: Optional[SocketEndpoint]) -> None:
        if endpoint is not None:
            endpoint.close()
        self._publish("cleanup.removing", path=report.path)
        try:
            remove_socket(report.path)
        except RemovalError as e:
            report.steps.append(StepResult("remove", FAILURE, e.describe()))
            self._publish("cleanup.failed", path=e.path, error=e.describe())
            return
        report.steps.append(StepResult("remove"))
        self._publish("cleanup.done", path=report.path)

    def _finish(self, report: RunReport) -> RunReport:
        failed = [s for s in report.steps if not s.ok]
        if failed:
            deciding = failed[-1] if self.cfg.exit_policy == "last_error_wins" else failed[0]
            report.status = deciding.status
            report.deciding_step = deciding.step
        else:
            report.status = SUCCESS
        self._publish("run.finished", status=report.status, deciding_step=report.deciding_step)
        return report


def usage(prog: str) -> str:
    return (
        f"Usage: {prog} /some/socketfile user group\n"
        "Compare fchown() and chown() on a UNIX domain socket file owned by user:group.\n"
    )


def main(argv: Optional[list[str]] = None, prog: Optional[str] = None) -> int:
    prog = prog or os.path.basename(sys.argv[0]) or "sock-fchown"
    ap = argparse.ArgumentParser(prog=prog, description="fchown() vs chown() on a UNIX domain socket file")
    ap.add_argument("path", nargs="?", help="Socket file to create (must not exist)")
    ap.add_argument("user", nargs="?", help="User name to hand the socket to")
    ap.add_argument("group", nargs="?", help="Group name to hand the socket to")
    ap.add_argument("--config", type=Path, default=None, help="YAML file with probe/report settings")
    ap.add_argument("--json", action="store_true", help="Print a JSON summary after the progress output")
    # Trailing positionals past the group are ignored.
    args, _ = ap.parse_known_args(argv)

    if args.path is None or args.user is None or args.group is None:
        sys.stdout.write(usage(prog))
        return 1

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        sys.stderr.write(f"{prog}: {e}\n")
        return 2

    bus = Bus()
    ConsoleReporter().attach(bus)
    report = ProbeRun(cfg, bus).run(args.path, args.user, args.group)

    if args.json or cfg.json_report:
        render_json(report.summary())
    sys.stdout.flush()
    return report.status


if __name__ == "__main__":
    raise SystemExit(main())
