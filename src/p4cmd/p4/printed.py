"""Parser for ``p4 -ztag print`` output.

Print interleaves a tagged header per file revision with the raw content
of that revision::

    ... depotFile //depot/main/hello.c
    ... rev 3
    ... type text
    ... fileSize 6

    hello
    ... depotFile //depot/main/next.c
    ...

The content is not tagged, so the stream cannot go through the record
tokenizer as a whole. Each header is tokenized on its own and decoded with
:data:`~p4cmd.p4.decoder.PRINTED_FILE`. The content that follows runs for
``fileSize`` bytes when that lands exactly on the next header (or on the
end of the output); otherwise, for example after keyword expansion changed
the size, it runs up to the next line that starts a header.
"""

from __future__ import annotations

from dataclasses import replace

from p4cmd.exceptions import SchemaViolationError, TaggedParseError
from p4cmd.logging import get_logger
from p4cmd.p4.decoder import PRINTED_FILE, decode
from p4cmd.p4.models import PrintedFile
from p4cmd.tagged import tokenize

__all__ = ["parse_print"]

logger = get_logger(__name__)

_FIELD_PREFIX = b"... "

#: First field of every file header.
_FILE_HEADER = b"... depotFile "


def _line_number(data: bytes, pos: int) -> int:
    return data.count(b"\n", 0, pos) + 1


def _read_header(data: bytes, pos: int) -> tuple[list[bytes], int]:
    """Header lines starting at ``pos`` and the offset where content starts."""
    lines: list[bytes] = []
    while pos < len(data):
        newline = data.find(b"\n", pos)
        next_pos = len(data) if newline == -1 else newline + 1
        line = data[pos:next_pos].rstrip(b"\r\n")
        if not line:
            # blank line closing the header
            return lines, next_pos
        if not line.startswith(_FIELD_PREFIX):
            break
        lines.append(line)
        pos = next_pos
    return lines, pos


def _at_next_file(data: bytes, pos: int) -> bool:
    return pos == len(data) or data.startswith(_FILE_HEADER, pos)


def _content_span(data: bytes, start: int, size: int | None) -> tuple[int, int]:
    """End of the content at ``start`` and the offset of the next header."""
    if size is not None and start + size <= len(data):
        end = start + size
        if _at_next_file(data, end):
            return end, end
        for separator in (b"\n", b"\r\n"):
            if data.startswith(separator, end) and _at_next_file(
                data, end + len(separator)
            ):
                return end, end + len(separator)

    if data.startswith(_FILE_HEADER, start):
        return start, start
    found = data.find(b"\n" + _FILE_HEADER, start)
    if found == -1:
        return len(data), len(data)
    return found + 1, found + 1


def parse_print(
    data: bytes,
    *,
    encoding: str = "utf-8",
    skip_invalid: bool = False,
) -> list[PrintedFile]:
    """Split ``p4 -ztag print`` output into printed files.

    Args:
        data: Raw stdout of the command.
        encoding: Encoding of the header fields. Content is kept as bytes.
        skip_invalid: Skip (and log) files whose header violates the
            schema instead of aborting.

    Returns:
        Files in output order; empty when nothing was printed.

    Raises:
        TaggedParseError: If the output does not start with a file header
            or a header repeats a field.
        SchemaViolationError: If a header cannot be decoded, unless
            ``skip_invalid``.

    Example:
        >>> out = b"... depotFile //depot/a\\n... fileSize 3\\n\\nabc"
        >>> parse_print(out)[0].content
        b'abc'
    """
    files: list[PrintedFile] = []
    pos = 0
    while pos < len(data):
        line_number = _line_number(data, pos)
        if not data.startswith(_FILE_HEADER, pos):
            raise TaggedParseError(
                f"Expected a file header at line {line_number}",
                context=data[pos : pos + 80].decode(encoding, errors="replace"),
                line_number=line_number,
            )

        header_lines, start = _read_header(data, pos)
        header = b"\n".join(header_lines).decode(encoding, errors="replace")
        records = tokenize(header)
        if len(records) != 1:
            raise TaggedParseError(
                f"File header at line {line_number} repeats a field",
                context=header_lines[0].decode(encoding, errors="replace"),
                line_number=line_number,
            )

        entity: PrintedFile | None
        try:
            entity = decode(records[0], PRINTED_FILE)
        except SchemaViolationError as e:
            if not skip_invalid:
                raise
            logger.warning(
                "p4_record_skipped",
                entity=PRINTED_FILE.name,
                field=e.field,
                position=len(files),
                reason=e.message,
            )
            entity = None

        end, pos = _content_span(
            data, start, entity.file_size if entity is not None else None
        )
        if entity is not None:
            files.append(replace(entity, content=data[start:end]))
    return files
