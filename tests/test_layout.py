"""Tests for moving generated files into the source tree."""

import pytest
from pydantic import ValidationError

from protoregen import PROTOBUF_CRATE_MOVES, Move, RelocationError, relocate

from .conftest import GENERATED_FILES


@pytest.fixture
def generated(tmp_path):
    tmp_dir = tmp_path / "tmp-generated"
    tmp_dir.mkdir()
    for name in GENERATED_FILES:
        (tmp_dir / name).write_text(f"// {name}\n")
    return tmp_dir


def test_protobuf_crate_layout(tmp_path, generated) -> None:
    """Descriptor sources go to src/, everything else to well_known_types/."""
    placements = relocate(generated, tmp_path, PROTOBUF_CRATE_MOVES)

    src = tmp_path / "src"
    wkt = src / "well_known_types"
    assert [(p.source, p.destination) for p in placements] == [
        ("descriptor.rs", src / "descriptor.rs"),
        ("plugin.rs", src / "plugin.rs"),
        ("rustproto.rs", src / "rustproto.rs"),
        ("doctest_pb.rs", src / "doctest_pb.rs"),
        ("well_known_types_mod.rs", wkt / "mod.rs"),
        ("any.rs", wkt / "any.rs"),
        ("timestamp.rs", wkt / "timestamp.rs"),
    ]
    assert (wkt / "mod.rs").read_text() == "// well_known_types_mod.rs\n"
    assert not (wkt / "well_known_types_mod.rs").exists()
    assert list(generated.iterdir()) == []
    assert all(p.changed for p in placements)


def test_unchanged_files_are_reported(tmp_path, generated) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "descriptor.rs").write_text("// descriptor.rs\n")
    (src / "plugin.rs").write_text("// stale\n")

    placements = {p.source: p for p in relocate(generated, tmp_path, PROTOBUF_CRATE_MOVES)}

    assert placements["descriptor.rs"].changed is False
    assert placements["plugin.rs"].changed is True
    assert (src / "plugin.rs").read_text() == "// plugin.rs\n"


def test_dry_run_leaves_everything_in_place(tmp_path, generated) -> None:
    placements = relocate(generated, tmp_path, PROTOBUF_CRATE_MOVES, dry_run=True)

    assert len(placements) == len(GENERATED_FILES)
    # the trailing glob does not pick up files claimed by earlier rules
    assert [p.source for p in placements[-2:]] == ["any.rs", "timestamp.rs"]
    assert not (tmp_path / "src").exists()
    assert sorted(p.name for p in generated.iterdir()) == sorted(GENERATED_FILES)


def test_missing_literal_source(tmp_path, generated) -> None:
    (generated / "plugin.rs").unlink()
    with pytest.raises(RelocationError, match="`plugin.rs` not found"):
        relocate(generated, tmp_path, PROTOBUF_CRATE_MOVES)


def test_glob_matching_nothing(tmp_path, generated) -> None:
    for name in ("any.rs", "timestamp.rs"):
        (generated / name).unlink()
    with pytest.raises(RelocationError, match=r"no generated file matches `\*.rs`"):
        relocate(generated, tmp_path, PROTOBUF_CRATE_MOVES)


def test_rename_requires_single_literal_source() -> None:
    with pytest.raises(ValidationError):
        Move(sources=["*.rs"], dest="src", rename="mod.rs")
    with pytest.raises(ValidationError):
        Move(sources=["a.rs", "b.rs"], dest="src", rename="mod.rs")
    with pytest.raises(ValidationError):
        Move(sources=[], dest="src")
