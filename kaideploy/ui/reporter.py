from __future__ import annotations

import sys
from typing import Any, Dict, Optional, TextIO

from debugproto.utils import format_bytes
from kaideploy.config import VERBOSITY_LEVELS
from kaideploy.core.session import InstallResult

BANNER = "kaideploy - install packaged apps over the remote debugger socket"


class ConsoleReporter:
    """Renders install session events for the terminal.

    ``quiet`` prints nothing but errors, ``normal`` prints a banner and the
    outcome, ``verbose`` also narrates every protocol step.
    """

    def __init__(self, verbosity: str = "normal", stream: Optional[TextIO] = None, err: Optional[TextIO] = None) -> None:
        if verbosity not in VERBOSITY_LEVELS:
            raise ValueError(f"Unknown verbosity {verbosity!r}")
        self.verbosity = verbosity
        self.stream = stream or sys.stdout
        self.err = err or sys.stderr

    @property
    def verbose(self) -> bool:
        return self.verbosity == "verbose"

    @property
    def quiet(self) -> bool:
        return self.verbosity == "quiet"

    def __call__(self, event: Dict[str, Any]) -> None:
        if not self.verbose:
            return
        match event.get("type"):
            case "device":
                self._print(f"device: {event.get('application_type') or 'unknown'}")
            case "sent":
                self._print(f"{event['command']} sent")
            case "received" if event.get("error"):
                self._print(f"{event['command']} error: {event['error']}")
            case "actor":
                self._print(f"{event['role']} actor: {event['actor']}")
            case "progress":
                line = f"chunk {event['chunks']}: {format_bytes(event['bytes'])} / {format_bytes(event['total'])}"
                if event.get("written") is not None:
                    line += f" (device wrote {event['written']} of {event.get('size')})"
                self._print(line)
            case "installed":
                self._print(f"appId: {event['app_id']}")
                if event.get("path"):
                    self._print(f"path: {event['path']}")
            case "state" if event.get("state") == "failed":
                self._print(f"failed during {event.get('step')}")
            case _:
                pass

    def banner(self) -> None:
        if not self.quiet:
            self._print(BANNER)

    def packing(self, path: str) -> None:
        if self.verbose:
            self._print(f">> packing {path}")

    def entry(self, name: str) -> None:
        if self.verbose:
            self._print(f"   {name}")

    def packed(self, size: int) -> None:
        if self.verbose:
            self._print(f">> package ready ({format_bytes(size)})")

    def connecting(self, address: str) -> None:
        if self.verbose:
            self._print(f">> opening debugger socket {address}")

    def finished(self, result: InstallResult) -> None:
        if self.quiet:
            return
        if self.verbose:
            suffix = " and launched" if result.launched else ""
            self._print(f">> installed {result.app_id}{suffix}")
            self._print(">> all done.")
        else:
            self._print("deploy done.")

    def failed(self, exc: BaseException) -> None:
        print(f"deploy failed: {exc}", file=self.err, flush=True)

    def _print(self, text: str) -> None:
        print(text, file=self.stream, flush=True)


__all__ = ["BANNER", "ConsoleReporter"]
