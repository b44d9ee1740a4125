"""Typed entities decoded from p4 tagged records.

All entities are frozen dataclasses with ``to_dict()``. Every top-level
entity carries an ``extra`` mapping that keeps the fields its schema does
not know about, in source order, so unknown data is never lost.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum

from p4cmd.p4.filetypes import Action, BaseFileType, FileType

__all__ = [
    "Changelist",
    "ChangelistFile",
    "ChangelistStatus",
    "ClientSpec",
    "DepotDir",
    "DepotFile",
    "FileStat",
    "PrintedFile",
    "SubmitResult",
    "SubmittedFile",
    "SyncedFile",
    "User",
    "ViewMapping",
    "WhereMapping",
]


class ChangelistStatus(str, Enum):
    """Lifecycle state of a changelist."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    SHELVED = "shelved"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Changelists
# =============================================================================


@dataclass(frozen=True, slots=True)
class ChangelistFile:
    """A file revision listed by ``p4 describe``.

    Attributes:
        depot_file: Depot path.
        action: Action recorded for the revision.
        file_type: File type of the revision.
        rev: Revision number.
        file_size: Size in bytes, when reported.
        digest: MD5 digest, when reported.
    """

    depot_file: str
    action: Action | str | None = None
    file_type: FileType | None = None
    rev: int | None = None
    file_size: int | None = None
    digest: str = ""

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Changelist:
    """A changelist from ``p4 changes`` or ``p4 describe``.

    Attributes:
        number: Changelist number.
        user: User who owns the changelist.
        client: Client workspace the changelist belongs to.
        time: Submission (or last update) time.
        status: pending, submitted or shelved; unknown states as strings.
        change_type: ``public`` or ``restricted``.
        path: Common depot path of the files in the changelist.
        description: Full description with trailing newlines removed.
        files: Files in the changelist (``describe`` only).
        jobs: Jobs fixed by the changelist (``describe`` only).
        extra: Fields not covered by the schema.
    """

    number: int
    user: str = ""
    client: str = ""
    time: datetime | None = None
    status: ChangelistStatus | str | None = None
    change_type: str = ""
    path: str = ""
    description: str = ""
    files: tuple[ChangelistFile, ...] = ()
    jobs: tuple[str, ...] = ()
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# File status
# =============================================================================


@dataclass(frozen=True, slots=True)
class FileStat:
    """File status from ``p4 fstat``.

    Attributes:
        depot_file: Depot path.
        client_file: Path in client syntax.
        path: Local path.
        is_mapped: True if the file is mapped by the client view.
        head_action: Action at the head revision.
        head_type: File type at the head revision.
        head_time: Time of the head revision's changelist.
        head_rev: Head revision number.
        head_change: Changelist of the head revision.
        head_mod_time: Modification time of the head revision.
        have_rev: Revision synced to the workspace.
        action: Open action, if opened in this workspace.
        action_owner: User who opened the file.
        change: Open changelist (``"default"`` or a number).
        file_type: Open file type, if opened.
        our_lock: True if locked by this workspace.
        other_open: ``user@client`` entries of other workspaces with the
            file open.
        other_lock: True if locked by another workspace.
        extra: Fields not covered by the schema.
    """

    depot_file: str
    client_file: str = ""
    path: str = ""
    is_mapped: bool = False
    head_action: Action | str | None = None
    head_type: FileType | None = None
    head_time: datetime | None = None
    head_rev: int | None = None
    head_change: int | None = None
    head_mod_time: datetime | None = None
    have_rev: int | None = None
    action: Action | str | None = None
    action_owner: str = ""
    change: str = ""
    file_type: FileType | None = None
    our_lock: bool = False
    other_open: tuple[str, ...] = ()
    other_lock: bool = False
    extra: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_opened(self) -> bool:
        """True if the file is open in this workspace."""
        return self.action is not None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Client workspaces
# =============================================================================


@dataclass(frozen=True, slots=True)
class ViewMapping:
    """One line of a client view.

    Attributes:
        depot: Depot side of the mapping.
        client: Client side of the mapping.
        exclude: ``-`` mapping (exclusion).
        overlay: ``+`` mapping (overlay).
    """

    depot: str
    client: str
    exclude: bool = False
    overlay: bool = False

    @classmethod
    def parse(cls, line: str) -> ViewMapping:
        """Parse a view line, honoring double quotes around paths.

        Raises:
            ValueError: If the line does not hold exactly two paths.

        Example:
            >>> ViewMapping.parse('-//depot/tmp/... "//ws/my tmp/..."')
            ViewMapping(depot='//depot/tmp/...', client='//ws/my tmp/...', exclude=True, overlay=False)
        """
        # Only double quotes group; p4 paths may contain ' and \.
        lexer = shlex.shlex(line, posix=True)
        lexer.whitespace_split = True
        lexer.quotes = '"'
        lexer.escape = ""
        lexer.commenters = ""
        try:
            parts = list(lexer)
        except ValueError as e:
            raise ValueError(f"Invalid view mapping: {line!r}") from e
        if len(parts) != 2:
            raise ValueError(f"Invalid view mapping: {line!r}")
        depot, client = parts
        exclude = depot.startswith("-")
        overlay = depot.startswith("+")
        if exclude or overlay:
            depot = depot[1:]
        return cls(depot=depot, client=client, exclude=exclude, overlay=overlay)

    def to_line(self) -> str:
        """Render the mapping as a view line."""
        marker = "-" if self.exclude else "+" if self.overlay else ""
        depot = f"{marker}{self.depot}"
        return " ".join(
            f'"{part}"' if " " in part else part for part in (depot, self.client)
        )

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ClientSpec:
    """A client workspace specification (``p4 client -o`` / ``p4 clients``).

    Attributes:
        name: Client workspace name.
        owner: Owning user.
        host: Restricting host, if any.
        description: Free-form description.
        root: Workspace root directory.
        alt_roots: Alternate roots.
        options: Option words (``allwrite``, ``noclobber``, ...).
        submit_options: Submit behavior (``submitunchanged``, ...).
        line_end: Line ending style.
        stream: Stream the workspace is bound to, if any.
        view: View mappings in order.
        update: Last time the spec was updated.
        access: Last time the workspace was used.
        extra: Fields not covered by the schema.
    """

    name: str
    owner: str = ""
    host: str = ""
    description: str = ""
    root: str = ""
    alt_roots: tuple[str, ...] = ()
    options: tuple[str, ...] = ()
    submit_options: str = ""
    line_end: str = ""
    stream: str = ""
    view: tuple[ViewMapping, ...] = ()
    update: datetime | None = None
    access: datetime | None = None
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Users
# =============================================================================


@dataclass(frozen=True, slots=True)
class User:
    """A user from ``p4 users``."""

    name: str
    email: str = ""
    full_name: str = ""
    user_type: str = ""
    update: datetime | None = None
    access: datetime | None = None
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Depot listings
# =============================================================================


@dataclass(frozen=True, slots=True)
class DepotFile:
    """A depot file revision from ``p4 files``."""

    depot_file: str
    rev: int | None = None
    change: int | None = None
    action: Action | str | None = None
    file_type: FileType | None = None
    time: datetime | None = None
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DepotDir:
    """A depot directory from ``p4 dirs``."""

    dir: str
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SyncedFile:
    """A file updated (or previewed) by ``p4 sync``.

    Attributes:
        depot_file: Depot path.
        client_file: Local path.
        rev: Revision synced.
        action: What sync did (``added``, ``updated``, ``deleted``, ...).
        file_size: Size of the synced revision.
        change: Changelist of the first record of the sync, when reported.
        extra: Fields not covered by the schema.
    """

    depot_file: str
    client_file: str = ""
    rev: int | None = None
    action: Action | str | None = None
    file_size: int | None = None
    change: int | None = None
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class WhereMapping:
    """How a file maps through the client view (``p4 where``).

    Attributes:
        depot_file: Depot syntax.
        client_file: Client syntax.
        path: Local syntax.
        unmap: True for an exclusionary mapping line.
        extra: Fields not covered by the schema.
    """

    depot_file: str
    client_file: str = ""
    path: str = ""
    unmap: bool = False
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# File content
# =============================================================================


#: Base types whose content is not line-oriented text.
_BINARY_BASES = frozenset(
    {BaseFileType.BINARY, BaseFileType.APPLE, BaseFileType.RESOURCE}
)


@dataclass(frozen=True, slots=True)
class PrintedFile:
    """A depot file revision and its content, from ``p4 print``.

    Attributes:
        depot_file: Depot path.
        rev: Revision printed.
        change: Changelist of the revision.
        action: Action recorded for the revision.
        file_type: File type of the revision.
        time: Time of the revision's changelist.
        file_size: Size stored in the depot. Differs from ``len(content)``
            when keywords are expanded.
        content: Raw file content exactly as p4 printed it.
        extra: Header fields not covered by the schema.
    """

    depot_file: str
    rev: int | None = None
    change: int | None = None
    action: Action | str | None = None
    file_type: FileType | None = None
    time: datetime | None = None
    file_size: int | None = None
    content: bytes = b""
    extra: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_binary(self) -> bool:
        return self.file_type is not None and self.file_type.base in _BINARY_BASES

    def text(self, encoding: str = "utf-8") -> str:
        """Content decoded as text; undecodable bytes are replaced."""
        return self.content.decode(encoding, errors="replace")

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Submit
# =============================================================================


@dataclass(frozen=True, slots=True)
class SubmittedFile:
    """A file revision created by ``p4 submit``."""

    depot_file: str
    rev: int | None = None
    action: Action | str | None = None
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SubmitResult:
    """Outcome of ``p4 submit``.

    Attributes:
        change: Changelist that was submitted.
        submitted_change: Final changelist number (may differ from
            ``change`` when the server renumbers on submit).
        open_files: Number of files opened in the changelist.
        locked_files: Number of files locked for the submit.
        files: Revisions created.
        extra: Fields not covered by the submit record shapes.
    """

    change: int | None = None
    submitted_change: int | None = None
    open_files: int | None = None
    locked_files: int | None = None
    files: tuple[SubmittedFile, ...] = ()
    extra: Mapping[str, str] = field(default_factory=dict)

    @property
    def submitted(self) -> bool:
        """True if the server reported a submitted changelist number."""
        return self.submitted_change is not None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)
