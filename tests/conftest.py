"""Shared fixtures: a fake subprocess layer standing in for protoc and cargo."""

import subprocess
from pathlib import Path

import pytest

from protoregen import toolchain

VENDORED_PROTOC = "/opt/protoc-bin-vendored/bin/protoc"

GENERATED_RS = """\
// @@protoc_insertion_point(attribute:{name})
// @@protoc_insertion_point(message:{name})
#[derive(PartialEq,Clone,Default,Debug)]
pub struct {name} {{
    pub field: i32,
    // @@protoc_insertion_point(special_field:{name}.special_fields)
    pub special_fields: crate::SpecialFields,
}}
"""

GENERATED_FILES = [
    "descriptor.rs",
    "plugin.rs",
    "rustproto.rs",
    "doctest_pb.rs",
    "well_known_types_mod.rs",
    "any.rs",
    "timestamp.rs",
]


class FakeRun:
    """Records commands and answers them like protoc and cargo would."""

    def __init__(self, version: str = "libprotoc 3.21.12"):
        self.version = version
        self.calls: list[list[str]] = []
        self.cwds: list[Path | None] = []
        self.generated = list(GENERATED_FILES)
        self.fail: dict[str, int] = {}

    def __call__(self, argv, cwd=None, capture_output=False, text=False):
        self.calls.append(list(argv))
        self.cwds.append(Path(cwd) if cwd is not None else None)

        name = Path(argv[0]).name
        if name in self.fail:
            return subprocess.CompletedProcess(argv, self.fail[name], "", f"{name}: boom\n")

        stdout = ""
        if argv[1:] == ["--version"]:
            stdout = self.version + "\n"
        elif argv[:2] == ["cargo", "run"]:
            stdout = VENDORED_PROTOC + "\n"
        elif "--rust_out" in argv:
            out_dir = Path(cwd or ".") / argv[argv.index("--rust_out") + 1]
            for file_name in self.generated:
                (out_dir / file_name).write_text(GENERATED_RS.format(name=Path(file_name).stem))
        return subprocess.CompletedProcess(argv, 0, stdout if capture_output else None, "" if capture_output else None)

    def commands(self) -> list[str]:
        return [" ".join(call[:2]) for call in self.calls]


@pytest.fixture
def fake_run(monkeypatch) -> FakeRun:
    fake = FakeRun()
    monkeypatch.setattr(toolchain.subprocess, "run", fake)
    return fake
