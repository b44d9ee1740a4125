"""Decode tagged records into typed entities.

Each entity kind has a static :class:`EntitySchema` mapping tagged field
names to dataclass attributes and value transforms. Decoding is total over
well-formed records: absent optional fields take the dataclass default and
unknown fields are kept in the entity's ``extra`` mapping. Only a missing
required field or a value its transform cannot parse is an error
(:class:`~p4cmd.exceptions.SchemaViolationError`).

p4 encodes lists as numbered fields (``View0``, ``View1``, ...). Those are
collected either into a tuple of scalars (:class:`IndexedField`) or, when
several numbered fields describe one item (``depotFile0``, ``action0``,
``rev0``), into a tuple of sub-entities (:class:`IndexedGroup`).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from p4cmd.exceptions import SchemaViolationError
from p4cmd.logging import get_logger
from p4cmd.p4.filetypes import Action, FileType, parse_action
from p4cmd.p4.models import (
    Changelist,
    ChangelistFile,
    ChangelistStatus,
    ClientSpec,
    DepotDir,
    DepotFile,
    FileStat,
    PrintedFile,
    SubmitResult,
    SubmittedFile,
    SyncedFile,
    User,
    ViewMapping,
    WhereMapping,
)
from p4cmd.tagged import Record

__all__ = [
    "CHANGELIST",
    "CLIENT_SPEC",
    "DEPOT_DIR",
    "DEPOT_FILE",
    "EntitySchema",
    "FILE_STAT",
    "FieldSpec",
    "IndexedField",
    "IndexedGroup",
    "PRINTED_FILE",
    "SYNCED_FILE",
    "USER",
    "WHERE_MAPPING",
    "decode",
    "decode_all",
    "decode_submit",
    "present",
    "split_list",
    "to_action",
    "to_file_type",
    "to_int",
    "to_status",
    "to_text",
    "to_timestamp",
    "to_view_mapping",
]

logger = get_logger(__name__)

Transform = Callable[[str], Any]

#: ``<name><index>`` numbered list fields.
_INDEXED_FIELD = re.compile(r"^(?P<base>\D.*?)(?P<index>\d+)$")

#: Date formats used by spec forms (``client -o``) and some listings.
_DATE_FORMATS: tuple[str, ...] = ("%Y/%m/%d %H:%M:%S", "%Y/%m/%d")

#: Unsigned decimal integers, as p4 prints counts, revisions and epochs.
_DIGITS = re.compile(r"[0-9]+")


# =============================================================================
# Value transforms
# =============================================================================


def to_int(value: str) -> int:
    """Parse an unsigned decimal integer."""
    text = value.strip()
    if not _DIGITS.fullmatch(text):
        raise ValueError(f"Invalid integer: {value!r}")
    return int(text)


def to_timestamp(value: str) -> datetime:
    """Parse a p4 time value.

    Epoch seconds become aware UTC datetimes. Formatted dates
    (``2024/01/31 10:00:00``) are in the server's local time zone, which the
    output does not state, so they are returned naive.

    Raises:
        ValueError: If the value is neither form or is out of range.
    """
    text = value.strip()
    if _DIGITS.fullmatch(text):
        try:
            return datetime.fromtimestamp(int(text), tz=UTC)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Invalid timestamp: {value!r}")


def to_text(value: str) -> str:
    """Multi-line text with p4's trailing newlines removed."""
    return value.rstrip("\n")


def to_status(value: str) -> ChangelistStatus | str:
    try:
        return ChangelistStatus(value.strip())
    except ValueError:
        return value.strip()


def to_action(value: str) -> Action | str:
    return parse_action(value.strip())


def to_file_type(value: str) -> FileType:
    return FileType.parse(value.strip())


def to_view_mapping(value: str) -> ViewMapping:
    return ViewMapping.parse(value)


def split_list(value: str) -> tuple[str, ...]:
    """Whitespace-separated list (``Options: noallwrite noclobber``)."""
    return tuple(value.split())


def present(value: str) -> bool:
    """Flag fields: their presence means True, whatever the value."""
    return True


# =============================================================================
# Schema types
# =============================================================================


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """How one tagged field maps onto an attribute.

    Attributes:
        attribute: Target attribute name.
        transform: Converts the raw string into the attribute's type.
        required: Absence is a schema violation.
    """

    attribute: str
    transform: Transform = str
    required: bool = False


@dataclass(frozen=True, slots=True)
class IndexedField:
    """Numbered fields (``View0``..``ViewN``) collected into a tuple."""

    attribute: str
    transform: Transform = str


@dataclass(frozen=True, slots=True)
class IndexedGroup:
    """Parallel numbered fields zipped into sub-entities by index.

    Attributes:
        attribute: Target tuple attribute on the parent entity.
        factory: Sub-entity constructor.
        fields: Base field name to spec on the sub-entity.
        key: Base field that every index must provide.
    """

    attribute: str
    factory: Callable[..., Any]
    fields: Mapping[str, FieldSpec]
    key: str


@dataclass(frozen=True, slots=True)
class EntitySchema:
    """Static decoding table for one entity kind."""

    entity: type
    fields: Mapping[str, FieldSpec]
    indexed: Mapping[str, IndexedField] = field(default_factory=dict)
    groups: tuple[IndexedGroup, ...] = ()

    @property
    def name(self) -> str:
        return self.entity.__name__


# =============================================================================
# Decoding
# =============================================================================


def _violation(
    schema_name: str, field_name: str, record: Record, reason: str
) -> SchemaViolationError:
    return SchemaViolationError(
        f"{schema_name}: {reason}",
        entity=schema_name,
        field=field_name,
        record=record,
    )


def _apply(
    spec: FieldSpec | IndexedField,
    field_name: str,
    value: str,
    schema_name: str,
    record: Record,
) -> Any:
    try:
        return spec.transform(value)
    except ValueError as e:
        raise _violation(
            schema_name, field_name, record, f"invalid value for {field_name!r}: {e}"
        ) from e


def decode(record: Record, schema: EntitySchema) -> Any:
    """Decode one record according to ``schema``.

    Args:
        record: Tagged record.
        schema: Entity schema.

    Returns:
        An instance of ``schema.entity``.

    Raises:
        SchemaViolationError: If a required field is missing or a value
            cannot be transformed.
    """
    name = schema.name
    values: dict[str, Any] = {}
    extra: dict[str, str] = {}
    indexed: dict[str, dict[int, Any]] = {}
    grouped: dict[str, dict[int, dict[str, str]]] = {}
    group_by_base = {
        base: group for group in schema.groups for base in group.fields
    }

    for field_name, raw in record.items():
        spec = schema.fields.get(field_name)
        if spec is not None:
            values[spec.attribute] = _apply(spec, field_name, raw, name, record)
            continue

        match = _INDEXED_FIELD.match(field_name)
        if match:
            base, index = match["base"], int(match["index"])
            if base in schema.indexed:
                item = _apply(schema.indexed[base], field_name, raw, name, record)
                indexed.setdefault(base, {})[index] = item
                continue
            if base in group_by_base:
                group = group_by_base[base]
                grouped.setdefault(group.attribute, {}).setdefault(index, {})[
                    base
                ] = raw
                continue

        extra[field_name] = raw

    for field_name, spec in schema.fields.items():
        if spec.required and spec.attribute not in values:
            raise _violation(
                name, field_name, record, f"missing required field {field_name!r}"
            )

    for base, items in indexed.items():
        values[schema.indexed[base].attribute] = tuple(
            items[i] for i in sorted(items)
        )

    for group in schema.groups:
        entries = grouped.get(group.attribute)
        if entries:
            values[group.attribute] = tuple(
                _decode_group_entry(group, index, entries[index], name, record)
                for index in sorted(entries)
            )

    if "extra" in schema.entity.__dataclass_fields__:
        values["extra"] = extra
    return schema.entity(**values)


def _decode_group_entry(
    group: IndexedGroup,
    index: int,
    raw_fields: Mapping[str, str],
    schema_name: str,
    record: Record,
) -> Any:
    if group.key not in raw_fields:
        raise _violation(
            schema_name,
            f"{group.key}{index}",
            record,
            f"missing required field '{group.key}{index}'",
        )
    kwargs = {
        group.fields[base].attribute: _apply(
            group.fields[base], f"{base}{index}", raw, schema_name, record
        )
        for base, raw in raw_fields.items()
    }
    return group.factory(**kwargs)


def decode_all(
    records: Iterable[Record],
    schema: EntitySchema,
    *,
    skip_invalid: bool = False,
) -> list[Any]:
    """Decode every record with one schema.

    Args:
        records: Records in output order.
        schema: Entity schema.
        skip_invalid: Skip (and log) records that violate the schema
            instead of aborting. Off by default: silently partial VCS
            metadata is rarely what a caller wants.

    Raises:
        SchemaViolationError: On the first invalid record, unless
            ``skip_invalid``.
    """
    entities: list[Any] = []
    for position, record in enumerate(records):
        try:
            entities.append(decode(record, schema))
        except SchemaViolationError as e:
            if not skip_invalid:
                raise
            logger.warning(
                "p4_record_skipped",
                entity=schema.name,
                field=e.field,
                position=position,
                reason=e.message,
            )
    return entities


def decode_submit(records: Iterable[Record]) -> SubmitResult:
    """Fold the records printed by ``p4 -ztag submit`` into one result.

    Submit emits several record shapes: the change header
    (``change``/``openFiles``), a lock count (``locked``), one record per
    file (``depotFile``/``rev``/``action``) and the final
    ``submittedChange``.

    Raises:
        SchemaViolationError: If a number cannot be parsed.
    """
    counters = {
        "change": "change",
        "openFiles": "open_files",
        "locked": "locked_files",
        "submittedChange": "submitted_change",
    }
    values: dict[str, Any] = {}
    files: list[SubmittedFile] = []
    extra: dict[str, str] = {}

    for record in records:
        if "depotFile" in record:
            files.append(decode(record, _SUBMITTED_FILE))
            continue
        for field_name, raw in record.items():
            if field_name in counters:
                spec = FieldSpec(counters[field_name], to_int)
                values[spec.attribute] = _apply(
                    spec, field_name, raw, "SubmitResult", record
                )
            else:
                extra[field_name] = raw

    return SubmitResult(**values, files=tuple(files), extra=extra)


# =============================================================================
# Entity schemas
# =============================================================================

CHANGELIST = EntitySchema(
    entity=Changelist,
    fields={
        "change": FieldSpec("number", to_int, required=True),
        "user": FieldSpec("user"),
        "client": FieldSpec("client"),
        "time": FieldSpec("time", to_timestamp),
        "status": FieldSpec("status", to_status),
        "changeType": FieldSpec("change_type"),
        "path": FieldSpec("path"),
        "desc": FieldSpec("description", to_text),
    },
    indexed={"job": IndexedField("jobs")},
    groups=(
        IndexedGroup(
            attribute="files",
            factory=ChangelistFile,
            key="depotFile",
            fields={
                "depotFile": FieldSpec("depot_file"),
                "action": FieldSpec("action", to_action),
                "type": FieldSpec("file_type", to_file_type),
                "rev": FieldSpec("rev", to_int),
                "fileSize": FieldSpec("file_size", to_int),
                "digest": FieldSpec("digest"),
            },
        ),
    ),
)

FILE_STAT = EntitySchema(
    entity=FileStat,
    fields={
        "depotFile": FieldSpec("depot_file", required=True),
        "clientFile": FieldSpec("client_file"),
        "path": FieldSpec("path"),
        "isMapped": FieldSpec("is_mapped", present),
        "headAction": FieldSpec("head_action", to_action),
        "headType": FieldSpec("head_type", to_file_type),
        "headTime": FieldSpec("head_time", to_timestamp),
        "headRev": FieldSpec("head_rev", to_int),
        "headChange": FieldSpec("head_change", to_int),
        "headModTime": FieldSpec("head_mod_time", to_timestamp),
        "haveRev": FieldSpec("have_rev", to_int),
        "action": FieldSpec("action", to_action),
        "actionOwner": FieldSpec("action_owner"),
        "change": FieldSpec("change"),
        "type": FieldSpec("file_type", to_file_type),
        "ourLock": FieldSpec("our_lock", present),
        "otherLock": FieldSpec("other_lock", present),
    },
    indexed={"otherOpen": IndexedField("other_open")},
)

CLIENT_SPEC = EntitySchema(
    entity=ClientSpec,
    fields={
        # ``client -o`` capitalizes field names, ``clients`` does not
        "Client": FieldSpec("name", required=True),
        "client": FieldSpec("name"),
        "Owner": FieldSpec("owner"),
        "Host": FieldSpec("host"),
        "Description": FieldSpec("description", to_text),
        "Root": FieldSpec("root"),
        "Options": FieldSpec("options", split_list),
        "SubmitOptions": FieldSpec("submit_options"),
        "LineEnd": FieldSpec("line_end"),
        "Stream": FieldSpec("stream"),
        "Update": FieldSpec("update", to_timestamp),
        "Access": FieldSpec("access", to_timestamp),
    },
    indexed={
        "AltRoots": IndexedField("alt_roots"),
        "View": IndexedField("view", to_view_mapping),
    },
)

USER = EntitySchema(
    entity=User,
    fields={
        "User": FieldSpec("name", required=True),
        "Email": FieldSpec("email"),
        "FullName": FieldSpec("full_name"),
        "Type": FieldSpec("user_type"),
        "Update": FieldSpec("update", to_timestamp),
        "Access": FieldSpec("access", to_timestamp),
    },
)

DEPOT_FILE = EntitySchema(
    entity=DepotFile,
    fields={
        "depotFile": FieldSpec("depot_file", required=True),
        "rev": FieldSpec("rev", to_int),
        "change": FieldSpec("change", to_int),
        "action": FieldSpec("action", to_action),
        "type": FieldSpec("file_type", to_file_type),
        "time": FieldSpec("time", to_timestamp),
    },
)

DEPOT_DIR = EntitySchema(
    entity=DepotDir,
    fields={"dir": FieldSpec("dir", required=True)},
)

SYNCED_FILE = EntitySchema(
    entity=SyncedFile,
    fields={
        "depotFile": FieldSpec("depot_file", required=True),
        "clientFile": FieldSpec("client_file"),
        "rev": FieldSpec("rev", to_int),
        "action": FieldSpec("action", to_action),
        "fileSize": FieldSpec("file_size", to_int),
        "change": FieldSpec("change", to_int),
    },
)

WHERE_MAPPING = EntitySchema(
    entity=WhereMapping,
    fields={
        "depotFile": FieldSpec("depot_file", required=True),
        "clientFile": FieldSpec("client_file"),
        "path": FieldSpec("path"),
        "unmap": FieldSpec("unmap", present),
    },
)

PRINTED_FILE = EntitySchema(
    entity=PrintedFile,
    fields={
        "depotFile": FieldSpec("depot_file", required=True),
        "rev": FieldSpec("rev", to_int),
        "change": FieldSpec("change", to_int),
        "action": FieldSpec("action", to_action),
        "type": FieldSpec("file_type", to_file_type),
        "time": FieldSpec("time", to_timestamp),
        "fileSize": FieldSpec("file_size", to_int),
    },
)

_SUBMITTED_FILE = EntitySchema(
    entity=SubmittedFile,
    fields={
        "depotFile": FieldSpec("depot_file", required=True),
        "rev": FieldSpec("rev", to_int),
        "action": FieldSpec("action", to_action),
    },
)
