"""svn subprocess wrapper — info, log, list, proplist, cat."""

from __future__ import annotations

import logging
import re
import subprocess
import tempfile
import threading
from typing import IO, Callable, Generator, List, Optional, TypeVar

from svnindex.svn.models import InfoEntry, ListEntry, LogEntry, NodeKind, PropertyList
from svnindex.svn.xml_parser import (
    XmlParseError,
    iter_list_entries,
    iter_log_entries,
    parse_info,
    parse_proplist,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# "URL non-existent in revision" / path not reachable through this URL
SVN_ERR_RA_ILLEGAL_URL = 170000

_CODE_RE = re.compile(r"\b([EW])(\d{6}):")


class SvnError(Exception):
    """Raised when svn is unavailable or a command fails.

    *codes* holds every numeric error/warning code svn printed on stderr,
    in order. svn often reports the interesting condition as a warning
    followed by a generic summary error, so callers should test membership
    rather than look only at the last code.
    """

    def __init__(self, message: str, codes: tuple[int, ...] = ()) -> None:
        super().__init__(message)
        self.codes = codes

    @property
    def code(self) -> Optional[int]:
        return self.codes[-1] if self.codes else None

    @property
    def is_illegal_url(self) -> bool:
        return SVN_ERR_RA_ILLEGAL_URL in self.codes


def error_codes(stderr: str) -> tuple[int, ...]:
    """Extract ``E123456`` / ``W123456`` codes from svn stderr."""
    return tuple(int(m.group(2)) for m in _CODE_RE.finditer(stderr))


def peg_target(url: str, revision: Optional[int] = None) -> str:
    """Return *url* pinned to *revision* with svn's ``@REV`` peg syntax."""
    return url if revision is None else f"{url}@{revision}"


class SvnClient:
    """One reusable, authenticated svn command context.

    Credentials and timeout are fixed at construction. The password is
    passed through ``--password-from-stdin`` so it never shows up in the
    process table.
    """

    def __init__(
        self,
        username: str = "",
        password: str = "",
        *,
        binary: str = "svn",
        timeout: Optional[float] = None,
    ) -> None:
        self._username = username
        self._password = password
        self._binary = binary
        self._timeout = timeout or None
        self.commands_run = 0

    # --- command plumbing ---

    def _command(self, args: List[str]) -> List[str]:
        cmd = [self._binary, *args, "--non-interactive", "--no-auth-cache"]
        if self._username:
            cmd += ["--username", self._username]
        if self._password:
            cmd.append("--password-from-stdin")
        return cmd

    def _stdin(self) -> Optional[bytes]:
        if not self._password:
            return None
        return (self._password + "\n").encode("utf-8")

    def _failure(self, args: List[str], stderr: str) -> SvnError:
        stderr = stderr.strip()
        return SvnError(f"svn {args[0]} failed: {stderr}", error_codes(stderr))

    def _run(self, args: List[str]) -> bytes:
        """Run an svn command and return stdout. Raises SvnError on failure."""
        self.commands_run += 1
        logger.debug("svn %s", " ".join(args))
        try:
            result = subprocess.run(
                self._command(args),
                input=self._stdin(),
                capture_output=True,
                timeout=self._timeout,
            )
        except FileNotFoundError:
            raise SvnError(f"{self._binary} is not installed or not on PATH")
        except subprocess.TimeoutExpired:
            raise SvnError(f"svn command timed out after {self._timeout}s: svn {args[0]}")

        if result.returncode != 0:
            raise self._failure(args, result.stderr.decode("utf-8", errors="replace"))
        return result.stdout

    def _stream(
        self,
        args: List[str],
        parse: Callable[[IO[bytes]], Generator[T, None, None]],
    ) -> Generator[T, None, None]:
        """Run an svn command and yield records parsed from its stdout as they arrive."""
        self.commands_run += 1
        logger.debug("svn %s", " ".join(args))
        stdin = self._stdin()
        # stderr goes to a file so a chatty svn cannot block on a full pipe
        with tempfile.TemporaryFile() as err:
            try:
                proc = subprocess.Popen(
                    self._command(args),
                    stdin=subprocess.PIPE if stdin else subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=err,
                )
            except FileNotFoundError:
                raise SvnError(f"{self._binary} is not installed or not on PATH")

            timed_out = threading.Event()
            timer: Optional[threading.Timer] = None
            if self._timeout:
                def _kill() -> None:
                    timed_out.set()
                    proc.kill()

                timer = threading.Timer(self._timeout, _kill)
                timer.daemon = True
                timer.start()

            try:
                if stdin and proc.stdin is not None:
                    proc.stdin.write(stdin)
                    proc.stdin.close()
                assert proc.stdout is not None
                try:
                    yield from parse(proc.stdout)
                except XmlParseError:
                    # svn failing usually leaves empty or truncated XML behind
                    if proc.wait() == 0 and not timed_out.is_set():
                        raise
                returncode = proc.wait()
            finally:
                if timer is not None:
                    timer.cancel()
                if proc.poll() is None:
                    proc.kill()
                    proc.wait()
                if proc.stdout is not None:
                    proc.stdout.close()

            if timed_out.is_set():
                raise SvnError(f"svn command timed out after {self._timeout}s: svn {args[0]}")
            if returncode != 0:
                err.seek(0)
                raise self._failure(args, err.read().decode("utf-8", errors="replace"))

    # --- backend operations ---

    def info(self, url: str, revision: Optional[int] = None) -> InfoEntry:
        """Return info for *url* at *revision* (HEAD when None)."""
        target = peg_target(url, revision)
        entries = parse_info(self._run(["info", "--xml", target]))
        if not entries:
            raise SvnError(f"svn info returned no entry for {target}")
        entry = entries[0]
        if entry.kind == NodeKind.FILE and entry.size is None:
            raw = self._run(["info", "--show-item", "repos-size", "--no-newline", target])
            size = raw.decode("ascii", errors="replace").strip()
            if size.isdigit():
                entry = InfoEntry(
                    url=entry.url,
                    kind=entry.kind,
                    revision=entry.revision,
                    last_changed_rev=entry.last_changed_rev,
                    last_changed_author=entry.last_changed_author,
                    last_changed_date=entry.last_changed_date,
                    size=int(size),
                )
        return entry

    def log(self, url: str, first: int, last: int) -> Generator[LogEntry, None, None]:
        """Yield log entries with changed paths for revisions *first*..*last*."""
        return self._stream(
            ["log", "--xml", "--verbose", "-r", f"{first}:{last}", url],
            iter_log_entries,
        )

    def list(self, url: str, revision: int) -> Generator[ListEntry, None, None]:
        """Yield every entry below *url* at *revision* (depth infinity)."""
        return self._stream(
            ["list", "--xml", "--depth", "infinity", peg_target(url, revision)],
            iter_list_entries,
        )

    def proplist(self, url: str, revision: int) -> List[PropertyList]:
        return parse_proplist(
            self._run(["proplist", "--xml", "--verbose", peg_target(url, revision)])
        )

    def cat(self, url: str, revision: int) -> bytes:
        return self._run(["cat", peg_target(url, revision)])
