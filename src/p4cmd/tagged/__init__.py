"""Tagged output tokenizer and formatter."""

from __future__ import annotations

from p4cmd.tagged.tokenizer import (
    KEY_VALUE,
    ZTAG,
    Record,
    TaggedFormat,
    format_records,
    tokenize,
)

__all__ = [
    "KEY_VALUE",
    "Record",
    "TaggedFormat",
    "ZTAG",
    "format_records",
    "tokenize",
]
