"""Tokenizer for p4's tagged output.

Tagged output is a sequence of records. Each record is a run of field lines
(``<prefix><name><separator><value>``), optionally followed by continuation
lines that extend the previous field's value, and records are separated by
blank lines. The exact framing differs between tool modes, so it is
described by a :class:`TaggedFormat` value rather than hard-coded:

- :data:`ZTAG` reads ``p4 -ztag`` output (``... depotFile //depot/a``)
- :data:`KEY_VALUE` reads plain ``name=value`` blocks with tab-indented
  continuation lines

:func:`format_records` is the inverse of :func:`tokenize` for every record
list it can represent.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeAlias

from p4cmd.exceptions import TaggedParseError

__all__ = [
    "KEY_VALUE",
    "Record",
    "TaggedFormat",
    "ZTAG",
    "format_records",
    "tokenize",
]

#: Line terminators recognised in tool output.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

#: One decoded block: field name to value, in source order.
Record: TypeAlias = dict[str, str]


@dataclass(frozen=True, slots=True)
class TaggedFormat:
    """Delimiter grammar of a tagged output mode.

    Attributes:
        field_prefix: Marker that starts every field line. When empty, any
            line that does not begin with whitespace is a field line.
        separator: Text between the field name and its value.
        continuation_indent: Indent stripped from (and written before)
            continuation lines.
        allow_bare_fields: Accept field lines with a name but no separator
            (value ``""``), as p4 emits for flags such as ``ourLock``.
        split_on_repeat: Start a new record when a field name repeats
            inside the current one.
    """

    field_prefix: str = "... "
    separator: str = " "
    continuation_indent: str = ""
    allow_bare_fields: bool = True
    split_on_repeat: bool = True

    def __post_init__(self) -> None:
        if not self.separator:
            raise ValueError("Separator cannot be empty")
        if not self.field_prefix and not self.continuation_indent:
            raise ValueError(
                "A format without a field prefix needs a continuation indent"
            )

    def is_field_line(self, line: str) -> bool:
        if self.field_prefix:
            return line.startswith(self.field_prefix)
        return not line[:1].isspace()


#: ``p4 -ztag`` output.
ZTAG = TaggedFormat()

#: ``name=value`` blocks with tab-indented continuation lines.
KEY_VALUE = TaggedFormat(
    field_prefix="",
    separator="=",
    continuation_indent="\t",
    allow_bare_fields=False,
)


def _split_field(
    line: str, fmt: TaggedFormat, line_number: int
) -> tuple[str, str]:
    body = line
    if fmt.field_prefix:
        # Level-2 fields are nested one prefix deeper (``... ... otherOpen0``).
        while body.startswith(fmt.field_prefix):
            body = body[len(fmt.field_prefix) :]
    name, sep, value = body.partition(fmt.separator)
    if not name.strip():
        raise TaggedParseError(
            f"Field line without a field name at line {line_number}",
            context=line,
            line_number=line_number,
        )
    if not sep:
        if not fmt.allow_bare_fields:
            raise TaggedParseError(
                f"Field line without separator {fmt.separator!r} "
                f"at line {line_number}",
                context=line,
                line_number=line_number,
            )
        name = name.rstrip()
    return name, value


def tokenize(text: str, fmt: TaggedFormat = ZTAG) -> list[Record]:
    """Split tagged output into records.

    Args:
        text: Decoded tool output.
        fmt: Delimiter grammar to apply.

    Returns:
        Records in source order; empty when the output holds no fields.

    Raises:
        TaggedParseError: On a continuation line with no preceding field in
            its record, a field line without a name, or (when bare fields
            are not allowed) a field line without a separator.

    Example:
        >>> tokenize("... change 1\\n... user alice\\n\\n... change 2\\n")
        [{'change': '1', 'user': 'alice'}, {'change': '2'}]
    """
    records: list[Record] = []
    current: Record = {}
    last_field: str | None = None

    for line_number, line in enumerate(_LINE_BREAK.split(text), start=1):
        if not line.strip():
            if current:
                records.append(current)
                current = {}
            last_field = None
            continue

        if fmt.is_field_line(line):
            name, value = _split_field(line, fmt, line_number)
            if fmt.split_on_repeat and name in current:
                records.append(current)
                current = {}
            current[name] = value
            last_field = name
            continue

        if last_field is None:
            raise TaggedParseError(
                f"Continuation line before any field at line {line_number}",
                context=line,
                line_number=line_number,
            )
        if fmt.continuation_indent and line.startswith(fmt.continuation_indent):
            line = line[len(fmt.continuation_indent) :]
        current[last_field] = f"{current[last_field]}\n{line}"

    if current:
        records.append(current)
    return records


def _format_record(record: Record, fmt: TaggedFormat) -> list[str]:
    lines: list[str] = []
    for name, value in record.items():
        if (
            not name
            or fmt.separator in name
            or name != name.strip()
            or _LINE_BREAK.search(name)
            # would read back as a nested prefix
            or (
                fmt.field_prefix
                and f"{name}{fmt.separator}".startswith(fmt.field_prefix)
            )
        ):
            raise ValueError(f"Field name cannot be represented: {name!r}")
        if "\r" in value:
            raise ValueError(
                f"Value of field {name!r} cannot be represented: {value!r}"
            )
        first, *rest = value.split("\n")
        lines.append(f"{fmt.field_prefix}{name}{fmt.separator}{first}")
        for extra in rest:
            continuation = f"{fmt.continuation_indent}{extra}"
            if not extra.strip() or fmt.is_field_line(continuation):
                raise ValueError(
                    f"Value of field {name!r} cannot be represented: {value!r}"
                )
            lines.append(continuation)
    return lines


def format_records(records: Iterable[Record], fmt: TaggedFormat = ZTAG) -> str:
    """Render records as tagged text.

    Args:
        records: Records to render.
        fmt: Delimiter grammar to apply.

    Returns:
        Tagged text, one blank line between records.

    Raises:
        ValueError: If a field name or value cannot be expressed in ``fmt``
            (for example a value containing a blank line).
    """
    blocks = ["\n".join(_format_record(record, fmt)) for record in records if record]
    return "".join(f"{block}\n\n" for block in blocks)
