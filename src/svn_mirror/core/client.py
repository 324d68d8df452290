import logging
import subprocess
from pathlib import Path

from ..errors import ExternalToolError, ToolUnavailable
from .models import RepoInfo, StatusEntry

logger = logging.getLogger(__name__)

# svn subcommands the client is allowed to run
ALLOWED_VERBS = frozenset(
    {
        "checkout",
        "update",
        "commit",
        "add",
        "delete",
        "revert",
        "status",
        "info",
        "copy",
        "merge",
        "cleanup",
    }
)

# Width of the flag columns that precede the revision fields in `svn status`
_STATUS_FLAG_COLUMNS = 9

_INFO_FIELDS = {
    "URL": "url",
    "Revision": "revision",
    "Last Changed Author": "last_changed_author",
    "Last Changed Rev": "last_changed_rev",
    "Last Changed Date": "last_changed_date",
}


class SvnClient:
    """Blocking wrapper around the ``svn`` command-line client.

    The client is stateless: it only remembers where to run, which
    executable to run and which credentials to pass.  Every failure is
    raised as ``ToolUnavailable`` or ``ExternalToolError``.  Output is
    decoded as UTF-8; bytes that do not decode become U+FFFD.

    Args:
        cwd: Working directory for every invocation (the working copy root).
        username: Optional ``--username`` value.
        password: Optional ``--password`` value.
        executable: Name or path of the svn binary.
        timeout: Seconds before a call is abandoned.  ``None`` (the
            default) waits indefinitely.
    """

    def __init__(
        self,
        cwd: str | Path | None = None,
        username: str | None = None,
        password: str | None = None,
        executable: str = "svn",
        timeout: float | None = None,
    ):
        self.cwd = str(cwd) if cwd is not None else None
        self.username = username
        self.password = password
        self.executable = executable
        self.timeout = timeout

    def _check_available(self) -> None:
        """Raise ``ToolUnavailable`` unless ``svn --version`` succeeds."""
        try:
            result = subprocess.run(
                [self.executable, "--version", "--quiet"],
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise ToolUnavailable(self.executable, str(exc)) from exc
        if result.returncode != 0:
            raise ToolUnavailable(
                self.executable, f"exit status {result.returncode}"
            )

    def _build_command(self, verb: str, args: list[str]) -> list[str]:
        if verb not in ALLOWED_VERBS:
            raise ValueError(f"Unsupported svn command: {verb}")
        cmd = [self.executable, verb, *args]
        if self.username:
            cmd.extend(["--username", self.username])
        if self.password:
            cmd.extend(["--password", self.password])
        return cmd

    def _masked(self, cmd: list[str]) -> str:
        """Render *cmd* for logging with the password hidden."""
        shown = list(cmd)
        for i, token in enumerate(shown[:-1]):
            if token == "--password":
                shown[i + 1] = "******"
        return " ".join(shown)

    def _execute(self, verb: str, args: list[str] | None = None) -> str:
        """Run ``svn <verb> <args>`` and return its trimmed stdout."""
        self._check_available()

        cmd = self._build_command(verb, list(args or []))
        logger.debug("Running %s (cwd=%s)", self._masked(cmd), self.cwd)

        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalToolError(
                f"svn {verb} timed out after {self.timeout}s", code=-1
            ) from exc
        except OSError as exc:
            raise ExternalToolError(str(exc), code=1) from exc

        if result.returncode != 0:
            message = (result.stderr or "").strip() or (
                f"svn {verb} exited with status {result.returncode}"
            )
            raise ExternalToolError(message, code=result.returncode)

        return (result.stdout or "").strip()

    # ------------------------------------------------------------------
    # Working copy operations
    # ------------------------------------------------------------------

    def checkout(self, url: str, path: str | Path) -> None:
        self._execute("checkout", [url, str(path)])

    def update(self, path: str | Path = ".") -> None:
        self._execute("update", [str(path)])

    def commit(self, path: str | Path, message: str) -> None:
        self._execute("commit", ["-m", message, str(path)])

    def add(self, path: str | Path, parents: bool = False) -> None:
        """Schedule *path* for addition.

        With ``parents=True`` unversioned parent directories are added too.
        """
        args = ["--parents", str(path)] if parents else [str(path)]
        self._execute("add", args)

    def delete(self, path: str | Path) -> None:
        self._execute("delete", [str(path)])

    def revert(self, path: str | Path, recursive: bool = False) -> None:
        """Discard local modifications under *path*.

        ``svn revert`` is non-recursive by default; pass ``recursive=True``
        to revert a whole tree.
        """
        args = ["-R", str(path)] if recursive else [str(path)]
        self._execute("revert", args)

    def cleanup(self, path: str | Path = ".") -> None:
        self._execute("cleanup", [str(path)])

    def branch(self, url: str, path: str, message: str) -> None:
        """Create a branch with ``svn copy``."""
        self._execute("copy", ["-m", message, url, path])

    def merge(self, source: str, target: str) -> None:
        self._execute("merge", [source, target])

    # ------------------------------------------------------------------
    # Metadata queries
    # ------------------------------------------------------------------

    def status(self, path: str | Path = ".") -> list[StatusEntry]:
        """Return one ``StatusEntry`` per line of ``svn status -v``."""
        output = self._execute("status", ["-v", str(path)])
        return parse_status(output)

    def info(self, path: str | Path = ".") -> RepoInfo:
        output = self._execute("info", [str(path)])
        return parse_info(output)


def parse_status(output: str) -> list[StatusEntry]:
    """Parse ``svn status -v`` output.

    Each line starts with a block of single-character flag columns.
    Versioned items follow it with working revision, last changed
    revision, author and path; unversioned items (``?``, ``I``) only
    carry the path.
    """
    entries: list[StatusEntry] = []
    for line in output.splitlines():
        if not line.strip() or len(line) <= _STATUS_FLAG_COLUMNS:
            continue
        # Headers such as "Performing status on external item at ..."
        if line.startswith("Performing status"):
            continue

        status_code = line[0]
        rest = line[_STATUS_FLAG_COLUMNS:]

        if status_code in ("?", "I"):
            entries.append(
                StatusEntry(path=rest.strip(), status_code=status_code)
            )
            continue

        fields = rest.split(None, 3)
        if len(fields) == 4:
            working_revision, _last_rev, _author, path = fields
            entries.append(
                StatusEntry(
                    path=path.strip(),
                    status_code=status_code,
                    working_revision=working_revision,
                )
            )
        else:
            entries.append(
                StatusEntry(path=rest.strip(), status_code=status_code)
            )
    return entries


def parse_info(output: str) -> RepoInfo:
    """Parse ``svn info`` ``Key: value`` lines into a ``RepoInfo``.

    Only the first colon separates key from value, so URLs and dates
    survive intact.  Unknown keys and malformed lines are ignored.
    """
    fields: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        name = _INFO_FIELDS.get(key.strip())
        if name is not None:
            fields[name] = value.strip()
    return RepoInfo(**fields)
