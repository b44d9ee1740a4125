"""Perforce file actions and file types.

Actions and base types the library does not know about are carried as plain
strings so newer servers never break decoding. File type modifiers, in
contrast, are a closed set: an unknown modifier flag is rejected with
``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "Action",
    "BaseFileType",
    "FileType",
    "FileTypeModifiers",
    "parse_action",
]


class Action(str, Enum):
    """Action performed on a file at a given revision."""

    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    BRANCH = "branch"
    MOVE_ADD = "move/add"
    MOVE_DELETE = "move/delete"
    INTEGRATE = "integrate"
    IMPORT = "import"
    PURGE = "purge"
    ARCHIVE = "archive"

    def __str__(self) -> str:
        return self.value


def parse_action(text: str) -> Action | str:
    """Map an action name to :class:`Action`, keeping unknown names as-is.

    Example:
        >>> parse_action("move/delete")
        <Action.MOVE_DELETE: 'move/delete'>
        >>> parse_action("updated")
        'updated'
    """
    try:
        return Action(text)
    except ValueError:
        return text


class BaseFileType(str, Enum):
    """Perforce base file type."""

    #: Synced as text; stored as RCS deltas.
    TEXT = "text"
    #: Synced as binary; stored compressed, full file per revision.
    BINARY = "binary"
    #: Symbolic link on platforms that support them.
    SYMLINK = "symlink"
    #: Translated to the local charset (unicode-mode servers only).
    UNICODE = "unicode"
    #: Synced with a UTF-8 BOM.
    UTF8 = "utf8"
    #: Synced as UTF-16 with BOM.
    UTF16 = "utf16"
    #: Mac file with resource fork (legacy).
    APPLE = "apple"
    #: Mac resource fork (legacy).
    RESOURCE = "resource"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class FileTypeModifiers:
    """Perforce file type modifiers (the part after ``+``).

    Attributes:
        always_writeable: ``w`` - file is always writable on client.
        executable: ``x`` - execute bit set on client.
        rcs_expansion: ``k`` - RCS keyword expansion.
        limited_expansion: ``ko`` - only $Id$ and $Header$ are expanded.
        exclusive: ``l`` - exclusive open (locking).
        full: ``C`` - full compressed version of each revision is stored.
        deltas: ``D`` - deltas stored in RCS format.
        full_uncompressed: ``F`` - full file per revision, uncompressed.
        head: ``S`` - only the head revision is stored.
        revisions: ``S<n>`` - only the most recent n revisions are stored.
        modtime: ``m`` - preserve original modtime.
        archive: ``X`` - archive trigger required.
        source: Modifier text as parsed; rendered back verbatim so the
            server's flag order is kept.
    """

    always_writeable: bool = False
    executable: bool = False
    rcs_expansion: bool = False
    limited_expansion: bool = False
    exclusive: bool = False
    full: bool = False
    deltas: bool = False
    full_uncompressed: bool = False
    head: bool = False
    revisions: int | None = None
    modtime: bool = False
    archive: bool = False
    source: str = field(default="", compare=False, repr=False)

    @classmethod
    def parse(cls, text: str) -> FileTypeModifiers:
        """Parse a modifier string such as ``"kx"`` or ``"lS10"``.

        Raises:
            ValueError: If the string contains an unknown flag.
        """
        flags: dict[str, object] = {}
        simple = {
            "w": "always_writeable",
            "x": "executable",
            "l": "exclusive",
            "C": "full",
            "D": "deltas",
            "F": "full_uncompressed",
            "m": "modtime",
            "X": "archive",
        }
        i = 0
        while i < len(text):
            flag = text[i]
            i += 1
            if flag in simple:
                flags[simple[flag]] = True
            elif flag == "k":
                if text[i : i + 1] == "o":
                    flags["limited_expansion"] = True
                    i += 1
                else:
                    flags["rcs_expansion"] = True
            elif flag == "S":
                digits = ""
                while i < len(text) and text[i] in "0123456789":
                    digits += text[i]
                    i += 1
                if digits:
                    flags["revisions"] = int(digits)
                else:
                    flags["head"] = True
            else:
                raise ValueError(f"Unknown file type modifier {flag!r} in {text!r}")
        return cls(**flags, source=text)  # type: ignore[arg-type]

    def __str__(self) -> str:
        if self.source:
            return self.source
        parts = [
            "w" if self.always_writeable else "",
            "x" if self.executable else "",
            "k" if self.rcs_expansion else "",
            "ko" if self.limited_expansion else "",
            "l" if self.exclusive else "",
            "C" if self.full else "",
            "D" if self.deltas else "",
            "F" if self.full_uncompressed else "",
            "S" if self.head else "",
            f"S{self.revisions}" if self.revisions is not None else "",
            "m" if self.modtime else "",
            "X" if self.archive else "",
        ]
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class FileType:
    """Perforce file type: a base type plus optional modifiers.

    Example:
        >>> ft = FileType.parse("binary+l")
        >>> ft.base, ft.modifiers.exclusive
        (<BaseFileType.BINARY: 'binary'>, True)
        >>> str(ft)
        'binary+l'
    """

    base: BaseFileType | str = BaseFileType.TEXT
    modifiers: FileTypeModifiers | None = None

    @classmethod
    def parse(cls, text: str) -> FileType:
        """Parse ``base[+modifiers]``.

        Old-style names (``ktext``, ``xbinary``) are kept as unknown base
        strings.

        Raises:
            ValueError: If the text is empty or a modifier is unknown.
        """
        base_text, sep, modifier_text = text.strip().partition("+")
        if not base_text:
            raise ValueError(f"Invalid file type: {text!r}")
        try:
            base: BaseFileType | str = BaseFileType(base_text)
        except ValueError:
            base = base_text
        modifiers = FileTypeModifiers.parse(modifier_text) if sep else None
        return cls(base=base, modifiers=modifiers)

    def __str__(self) -> str:
        if self.modifiers is None:
            return str(self.base)
        return f"{self.base}+{self.modifiers}"
