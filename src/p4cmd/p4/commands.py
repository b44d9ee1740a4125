"""Argument builders for p4 operations.

Each builder validates its own inputs and returns an
:class:`~p4cmd.runners.models.Invocation`. Builders hold no state and run
nothing; :class:`~p4cmd.p4.client.P4Client` executes what they build.
Invalid input raises ``ValueError`` before any process is started.
"""

from __future__ import annotations

from collections.abc import Iterable

from p4cmd.p4.models import ChangelistStatus, ClientSpec
from p4cmd.runners.models import Invocation

__all__ = [
    "changes_args",
    "client_read_args",
    "client_write_args",
    "clients_args",
    "describe_args",
    "dirs_args",
    "files_args",
    "fstat_args",
    "print_args",
    "render_client_form",
    "submit_args",
    "sync_args",
    "users_args",
    "where_args",
]

#: Changelist states accepted by ``p4 changes -s``.
CHANGE_STATUSES: frozenset[str] = frozenset(s.value for s in ChangelistStatus)


# =============================================================================
# Validation helpers
# =============================================================================


def _file_list(files: str | Iterable[str], *, required: bool, what: str) -> list[str]:
    items = [files] if isinstance(files, str) else list(files)
    for item in items:
        if not item or item.isspace():
            raise ValueError(f"Empty {what} argument")
    if required and not items:
        raise ValueError(f"At least one {what} is required")
    return items


def _positive(name: str, value: int) -> str:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return str(value)


def _max_option(max_results: int | None) -> list[str]:
    if max_results is None:
        return []
    return ["-m", _positive("max_results", max_results)]


# =============================================================================
# Changelists
# =============================================================================


def changes_args(
    files: str | Iterable[str] = (),
    *,
    status: ChangelistStatus | str | None = None,
    user: str | None = None,
    client: str | None = None,
    max_results: int | None = None,
    long_output: bool = True,
    follow_integrations: bool = False,
) -> Invocation:
    """Build ``p4 changes``.

    Args:
        files: Restrict to changelists affecting these file patterns.
        status: ``pending``, ``submitted`` or ``shelved``.
        user: Restrict to one user's changelists.
        client: Restrict to one client workspace.
        max_results: Limit to the N most recent changelists.
        long_output: Include full descriptions (``-l``); p4 truncates them
            to 31 characters otherwise.
        follow_integrations: Include changelists integrated into the files
            (``-i``).
    """
    args: list[str] = []
    if follow_integrations:
        args.append("-i")
    if long_output:
        args.append("-l")
    args += _max_option(max_results)
    if status is not None:
        status_text = str(status)
        if status_text not in CHANGE_STATUSES:
            raise ValueError(f"Invalid changelist status: {status_text!r}")
        args += ["-s", status_text]
    if user:
        args += ["-u", user]
    if client:
        args += ["-c", client]
    args += _file_list(files, required=False, what="file")
    return Invocation("changes", tuple(args))


def describe_args(change: int, *, shelved: bool = False) -> Invocation:
    """Build ``p4 describe -s`` for one changelist (no diffs).

    Raises:
        ValueError: If ``change`` is not a positive integer.
    """
    args = ["-s"]
    if shelved:
        args.append("-S")
    args.append(_positive("change", change))
    return Invocation("describe", tuple(args))


def submit_args(
    *,
    description: str | None = None,
    change: int | None = None,
    files: str | Iterable[str] = (),
) -> Invocation:
    """Build ``p4 submit``.

    Either submit the default changelist with a description (optionally
    limited to ``files``), or submit an existing numbered changelist.

    Raises:
        ValueError: Unless exactly one of ``description`` and ``change`` is
            given, or if files are combined with ``change``.
    """
    if (description is None) == (change is None):
        raise ValueError("Specify exactly one of description or change")
    if change is not None:
        if _file_list(files, required=False, what="file"):
            raise ValueError("Files cannot be combined with a numbered changelist")
        return Invocation("submit", ("-c", _positive("change", change)))
    assert description is not None
    if not description.strip():
        raise ValueError("Submit description cannot be empty")
    file_args = _file_list(files, required=False, what="file")
    return Invocation("submit", ("-d", description, *file_args))


# =============================================================================
# Files
# =============================================================================


def fstat_args(
    files: str | Iterable[str], *, max_results: int | None = None
) -> Invocation:
    """Build ``p4 fstat`` for one or more file patterns."""
    file_args = _file_list(files, required=True, what="file")
    return Invocation("fstat", (*_max_option(max_results), *file_args))


def files_args(
    files: str | Iterable[str],
    *,
    all_revisions: bool = False,
    syncable_only: bool = False,
    ignore_case: bool = False,
    max_results: int | None = None,
) -> Invocation:
    """Build ``p4 files``.

    Args:
        files: File patterns, optionally with revision specifiers.
        all_revisions: List every revision in a range (``-a``), not just
            the highest.
        syncable_only: Skip deleted, purged and archived revisions (``-e``).
        ignore_case: Case-insensitive matching (``-i``).
        max_results: Limit the number of files listed.
    """
    args: list[str] = []
    if all_revisions:
        args.append("-a")
    if syncable_only:
        args.append("-e")
    if ignore_case:
        args.append("-i")
    args += _max_option(max_results)
    args += _file_list(files, required=True, what="file")
    return Invocation("files", tuple(args))


def dirs_args(
    dirs: str | Iterable[str],
    *,
    client_only: bool = False,
    stream: str | None = None,
    include_deleted: bool = False,
    include_synced: bool = False,
    ignore_case: bool = False,
) -> Invocation:
    """Build ``p4 dirs``.

    Args:
        dirs: Directory patterns (``*`` wildcards; ``...`` is not allowed).
        client_only: Only directories mapped by the client view (``-C``).
        stream: Only directories in this stream's view (``-S``).
        include_deleted: Include directories holding only deleted files
            (``-D``).
        include_synced: Only directories with files synced to the
            workspace (``-H``).
        ignore_case: Case-insensitive matching (``-i``).
    """
    dir_args = _file_list(dirs, required=True, what="directory")
    for pattern in dir_args:
        if "..." in pattern:
            raise ValueError(f"p4 dirs does not accept '...': {pattern!r}")
    args: list[str] = []
    if client_only:
        args.append("-C")
    if stream:
        args += ["-S", stream]
    if include_deleted:
        args.append("-D")
    if include_synced:
        args.append("-H")
    if ignore_case:
        args.append("-i")
    return Invocation("dirs", (*args, *dir_args))


def print_args(
    files: str | Iterable[str],
    *,
    all_revisions: bool = False,
    keyword_expansion: bool = True,
    max_files: int | None = None,
) -> Invocation:
    """Build ``p4 print``.

    Args:
        files: File patterns, optionally with revision specifiers.
        all_revisions: Print every revision in a range (``-a``), not just
            the highest.
        keyword_expansion: Expand RCS keywords; False passes ``-k``.
        max_files: Print at most N files (``-m``).
    """
    args: list[str] = []
    if all_revisions:
        args.append("-a")
    if not keyword_expansion:
        args.append("-k")
    if max_files is not None:
        args += ["-m", _positive("max_files", max_files)]
    args += _file_list(files, required=True, what="file")
    return Invocation("print", tuple(args))


def where_args(files: str | Iterable[str] = ()) -> Invocation:
    """Build ``p4 where``; no files means the current directory and below."""
    return Invocation("where", tuple(_file_list(files, required=False, what="file")))


def sync_args(
    files: str | Iterable[str] = (),
    *,
    force: bool = False,
    preview: bool = False,
    server_only: bool = False,
    client_only: bool = False,
    verify: bool = False,
    max_files: int | None = None,
    parallel: int | None = None,
) -> Invocation:
    """Build ``p4 sync``.

    Args:
        files: File patterns; none means the whole workspace.
        force: Resync files already present (``-f``).
        preview: Report what would be synced without syncing (``-n``).
        server_only: Update the have list without transferring files
            (``-k``).
        client_only: Populate the workspace without updating the have list
            (``-p``).
        verify: Skip files modified in the workspace (``-s``).
        max_files: Sync at most N files (``-m``).
        parallel: Number of transfer threads (``--parallel``).
    """
    if server_only and client_only:
        raise ValueError("server_only and client_only are mutually exclusive")
    args: list[str] = []
    if force:
        args.append("-f")
    if preview:
        args.append("-n")
    if server_only:
        args.append("-k")
    if client_only:
        args.append("-p")
    if verify:
        args.append("-s")
    if max_files is not None:
        args += ["-m", _positive("max_files", max_files)]
    if parallel is not None:
        args += ["--parallel", f"threads={_positive('parallel', parallel)}"]
    args += _file_list(files, required=False, what="file")
    return Invocation("sync", tuple(args))


# =============================================================================
# Workspaces and users
# =============================================================================


def client_read_args(name: str | None = None) -> Invocation:
    """Build ``p4 client -o`` (current client when ``name`` is None)."""
    if name is not None and (not name or name.isspace()):
        raise ValueError("Client name cannot be empty")
    return Invocation("client", ("-o", name) if name else ("-o",))


def client_write_args(spec: ClientSpec) -> Invocation:
    """Build ``p4 client -i`` with the spec form on stdin."""
    if not spec.name or spec.name.isspace():
        raise ValueError("Client name cannot be empty")
    return Invocation("client", ("-i",), input=render_client_form(spec))


def clients_args(
    *,
    user: str | None = None,
    name_filter: str | None = None,
    max_results: int | None = None,
) -> Invocation:
    """Build ``p4 clients``.

    Args:
        user: Only workspaces owned by this user (``-u``).
        name_filter: Case-sensitive name pattern (``-e``).
        max_results: Limit the number of workspaces listed.
    """
    args: list[str] = []
    if user:
        args += ["-u", user]
    if name_filter:
        args += ["-e", name_filter]
    args += _max_option(max_results)
    return Invocation("clients", tuple(args))


def users_args(
    users: str | Iterable[str] = (), *, max_results: int | None = None
) -> Invocation:
    """Build ``p4 users``, optionally limited to name patterns."""
    user_args = _file_list(users, required=False, what="user")
    return Invocation("users", (*_max_option(max_results), *user_args))


def _form_section(key: str, value: str | Iterable[str]) -> str | None:
    lines = value.split("\n") if isinstance(value, str) else list(value)
    if not any(line.strip() for line in lines):
        return None
    if isinstance(value, str) and len(lines) == 1:
        return f"{key}:\t{value}"
    body = "\n".join(f"\t{line}" for line in lines)
    return f"{key}:\n{body}"


def render_client_form(spec: ClientSpec) -> str:
    """Render a client spec in p4's form syntax for ``client -i``.

    Single-line values share the line with their key; multi-line values
    and lists follow on tab-indented lines. Server-maintained fields
    (``Update``, ``Access``) are left out.

    Example:
        >>> print(render_client_form(ClientSpec(name="ws", root="/src")))
        Client:	ws
        <BLANKLINE>
        Root:	/src
        <BLANKLINE>
    """
    sections = [
        _form_section("Client", spec.name),
        _form_section("Owner", spec.owner),
        _form_section("Host", spec.host),
        _form_section("Description", spec.description),
        _form_section("Root", spec.root),
        _form_section("AltRoots", spec.alt_roots),
        _form_section("Options", " ".join(spec.options)),
        _form_section("SubmitOptions", spec.submit_options),
        _form_section("LineEnd", spec.line_end),
        _form_section("Stream", spec.stream),
        _form_section("View", [mapping.to_line() for mapping in spec.view]),
    ]
    sections += [_form_section(key, value) for key, value in spec.extra.items()]
    return "".join(f"{section}\n\n" for section in sections if section)
