# ABOUTME: Extractor that runs an independently maintained scraper as a child process.
# ABOUTME: The child gets the URL as its last argument and must print one JSON object.

import json
import logging
import re
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bookscout.errors import (
    DependencyInstallFailed,
    ExtractionCancelled,
    ExtractionFailed,
    ExtractionTimeout,
)
from bookscout.metadata.types import RawRecord

logger = logging.getLogger(__name__)

# Scrapers write progress chatter to stderr; only these words mean it actually failed.
_STDERR_FAILURE_RE = re.compile(r"error|exception|failed", re.IGNORECASE)
_STDOUT_PREVIEW_CHARS = 500

PayloadParser = Callable[[dict[str, Any]], RawRecord]


@dataclass
class _Child:
    thread_id: int
    cancelled: bool = False


def _terminate(proc: subprocess.Popen[str]) -> None:
    """Kill a child process and reap it so no zombie is left behind."""
    if proc.poll() is None:
        proc.kill()
    proc.communicate()


class SubprocessExtractor:
    """Runs ``<command...> <url>`` and parses its stdout as a single JSON object.

    The scraper's dependencies are installed once per extractor, before its
    first extraction, by running ``install_command`` in ``cwd``. Pass
    ``install_command=None`` for scrapers that need no preparation.

    Running children are tracked per calling thread so that cancel() can
    stop one abandoned run without touching runs on other threads.
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        parse_payload: PayloadParser,
        cwd: Path | None = None,
        install_command: Sequence[str] | None = None,
        timeout: float = 30.0,
        install_timeout: float = 300.0,
        name: str = "external",
    ) -> None:
        if not command:
            raise ValueError("command must not be empty")
        self._command = list(command)
        self._parse_payload = parse_payload
        self._cwd = cwd
        self._install_command = list(install_command) if install_command else None
        self._timeout = timeout
        self._install_timeout = install_timeout
        self._name = name
        self._dependencies_ready = self._install_command is None
        self._lock = threading.Lock()
        self._running: dict[subprocess.Popen[str], _Child] = {}

    @property
    def name(self) -> str:
        return self._name

    def ensure_dependencies(self) -> None:
        """Install the scraper's dependencies if that has not happened yet.

        Raises:
            DependencyInstallFailed: If the install command cannot run,
                times out, or exits non-zero.
        """
        if self._dependencies_ready or self._install_command is None:
            return

        logger.info("Ensuring %s scraper dependencies...", self._name)
        try:
            result = subprocess.run(
                self._install_command,
                cwd=self._cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._install_timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise DependencyInstallFailed(f"{self._name}: {exc}") from exc

        if result.returncode != 0:
            output = (result.stderr or result.stdout).strip()
            raise DependencyInstallFailed(
                f"{self._name}: install exited with status {result.returncode}: {output}"
            )

        logger.info("%s scraper dependencies are ready.", self._name)
        self._dependencies_ready = True

    def extract(self, url: str) -> RawRecord:
        """Run the scraper for url and parse what it prints.

        Raises:
            DependencyInstallFailed: If the scraper could not be prepared.
            ExtractionTimeout: If the scraper did not finish in time.
            ExtractionCancelled: If cancel() stopped the scraper.
            ExtractionFailed: On failure vocabulary in stderr, a non-zero
                exit, or stdout that is empty or not a JSON object.
        """
        self.ensure_dependencies()

        returncode, stdout, stderr = self._run([*self._command, url])

        if stderr.strip():
            if _STDERR_FAILURE_RE.search(stderr):
                raise ExtractionFailed(stderr.strip())
            logger.debug("%s scraper stderr: %s", self._name, stderr.strip())

        if returncode != 0:
            raise ExtractionFailed(
                f"{self._name} scraper exited with status {returncode}"
            )

        if not stdout.strip():
            raise ExtractionFailed(f"Empty response from {self._name} scraper")

        try:
            payload = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise ExtractionFailed(
                f"Scraper output is not valid JSON ({exc}): {stdout[:_STDOUT_PREVIEW_CHARS]}"
            ) from exc

        if not isinstance(payload, dict):
            raise ExtractionFailed(
                f"Scraper output must be a JSON object, got {type(payload).__name__}"
            )
        return self._parse_payload(payload)

    def cancel(self, thread_id: int | None = None) -> int:
        """Kill the scraper processes started from thread_id, or all of them.

        The waiting extract() call raises ExtractionCancelled. Returns the
        number of processes killed.
        """
        with self._lock:
            targets = [
                proc
                for proc, entry in self._running.items()
                if thread_id is None or entry.thread_id == thread_id
            ]
            for proc in targets:
                self._running[proc].cancelled = True
        for proc in targets:
            if proc.poll() is None:
                logger.info("Cancelling %s scraper (pid %d)", self._name, proc.pid)
                proc.kill()
        return len(targets)

    def _run(self, args: list[str]) -> tuple[int, str, str]:
        """Run the scraper. Unless it finishes on its own, the child is killed and reaped."""
        logger.debug("Running %s", args)
        try:
            proc = subprocess.Popen(
                args,
                cwd=self._cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise ExtractionFailed(f"Could not start {self._name} scraper: {exc}") from exc

        with self._lock:
            self._running[proc] = _Child(threading.get_ident())
        try:
            stdout, stderr = proc.communicate(timeout=self._timeout)
        except subprocess.TimeoutExpired as exc:
            _terminate(proc)
            raise ExtractionTimeout(
                f"{self._name} scraper did not finish within {self._timeout:g}s"
            ) from exc
        except BaseException:
            _terminate(proc)
            raise
        finally:
            with self._lock:
                cancelled = self._running.pop(proc).cancelled
        if cancelled:
            raise ExtractionCancelled(f"{self._name} scraper was stopped")
        return proc.returncode, stdout, stderr
