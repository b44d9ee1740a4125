"""Tests for file actions and file types."""

from __future__ import annotations

import pytest

from p4cmd.p4.filetypes import (
    Action,
    BaseFileType,
    FileType,
    FileTypeModifiers,
    parse_action,
)


class TestParseAction:
    """Tests for parse_action()."""

    @pytest.mark.parametrize("action", list(Action))
    def test_known_actions(self, action: Action) -> None:
        assert parse_action(action.value) is action

    def test_unknown_action_is_kept(self) -> None:
        assert parse_action("undo") == "undo"

    def test_str(self) -> None:
        assert str(Action.MOVE_DELETE) == "move/delete"


class TestFileTypeModifiers:
    """Tests for FileTypeModifiers.parse()."""

    def test_simple_flags(self) -> None:
        mods = FileTypeModifiers.parse("wxlCDFmX")

        assert mods.always_writeable
        assert mods.executable
        assert mods.exclusive
        assert mods.full
        assert mods.deltas
        assert mods.full_uncompressed
        assert mods.modtime
        assert mods.archive
        assert not mods.rcs_expansion

    def test_keyword_expansion(self) -> None:
        assert FileTypeModifiers.parse("k").rcs_expansion
        limited = FileTypeModifiers.parse("ko")
        assert limited.limited_expansion
        assert not limited.rcs_expansion

    def test_head_only(self) -> None:
        mods = FileTypeModifiers.parse("S")

        assert mods.head
        assert mods.revisions is None

    def test_keep_revisions(self) -> None:
        mods = FileTypeModifiers.parse("S10w")

        assert mods.revisions == 10
        assert not mods.head
        assert mods.always_writeable

    def test_unknown_flag(self) -> None:
        with pytest.raises(ValueError, match="Unknown file type modifier 'Q'"):
            FileTypeModifiers.parse("kQ")

    def test_equality_ignores_flag_order(self) -> None:
        assert FileTypeModifiers.parse("kx") == FileTypeModifiers.parse("xk")

    def test_rendering_built_modifiers(self) -> None:
        mods = FileTypeModifiers(executable=True, revisions=3)

        assert str(mods) == "xS3"


class TestFileType:
    """Tests for FileType.parse() and rendering."""

    def test_base_only(self) -> None:
        file_type = FileType.parse("binary")

        assert file_type.base is BaseFileType.BINARY
        assert file_type.modifiers is None

    @pytest.mark.parametrize(
        "text", ["binary+l", "text+kx", "text+S10", "utf16", "text+ko"]
    )
    def test_canonical_strings_are_stable(self, text: str) -> None:
        assert str(FileType.parse(text)) == text

    def test_unknown_base_kept(self) -> None:
        file_type = FileType.parse("ktext")

        assert file_type.base == "ktext"
        assert str(file_type) == "ktext"

    def test_empty(self) -> None:
        with pytest.raises(ValueError, match="Invalid file type"):
            FileType.parse("")

    def test_unknown_modifier(self) -> None:
        with pytest.raises(ValueError):
            FileType.parse("text+Z")

    def test_default_is_text(self) -> None:
        assert str(FileType()) == "text"
