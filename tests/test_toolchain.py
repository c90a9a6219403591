"""Tests for external command handling and toolchain discovery."""

from pathlib import Path

import pytest

from protoregen import (
    VERSION_MISMATCH_MESSAGE,
    CommandError,
    ProtocVersionError,
    Toolchain,
    cargo_build,
    cargo_run,
    check_protoc_version,
    exe_suffix,
    protoc_version,
    run_command,
)
from protoregen import toolchain

from .conftest import VENDORED_PROTOC


def test_protoc_version(fake_run) -> None:
    assert protoc_version() == "libprotoc 3.21.12"
    assert fake_run.calls == [["protoc", "--version"]]


def test_check_protoc_version_accepts_v3() -> None:
    check_protoc_version("libprotoc 3.21.12")
    check_protoc_version("libprotoc 3.0.0")


@pytest.mark.parametrize("version", ["libprotoc 2.6.1", "libprotoc 21.5", "", "protoc 3.1"])
def test_check_protoc_version_rejects(version) -> None:
    with pytest.raises(ProtocVersionError) as exc_info:
        check_protoc_version(version)
    assert str(exc_info.value) == VERSION_MISMATCH_MESSAGE
    assert exc_info.value.version == version


def test_check_protoc_version_custom_prefix() -> None:
    check_protoc_version("libprotoc 25.1", prefix="libprotoc 25")


@pytest.mark.parametrize(
    "system, suffix",
    [("Linux", ""), ("Darwin", ""), ("Windows", ".exe"), ("MSYS_NT-10.0-19045", ".exe"), ("Plan9", "")],
)
def test_exe_suffix(system, suffix) -> None:
    assert exe_suffix(system) == suffix


def test_run_command_failure_carries_stderr(fake_run) -> None:
    fake_run.fail["cargo"] = 101
    with pytest.raises(CommandError) as exc_info:
        run_command(["cargo", "build"], capture=True)

    err = exc_info.value
    assert err.returncode == 101
    assert err.argv == ["cargo", "build"]
    assert "cargo: boom" in str(err)


def test_run_command_missing_executable(monkeypatch) -> None:
    def missing(argv, **kwargs):
        raise FileNotFoundError(argv[0])

    monkeypatch.setattr(toolchain.subprocess, "run", missing)
    with pytest.raises(CommandError) as exc_info:
        run_command(["protoc", "--version"])
    assert exc_info.value.returncode is None
    assert "command not found: protoc" in str(exc_info.value)


def test_cargo_commands(fake_run, tmp_path) -> None:
    cargo_build("../protobuf-codegen/Cargo.toml", cwd=tmp_path)
    cargo_build("../protoc-bin-vendored/Cargo.toml", bin="protoc-bin-which", cwd=tmp_path)
    path = cargo_run("../protoc-bin-vendored/Cargo.toml", "protoc-bin-which", cwd=tmp_path)

    assert path == VENDORED_PROTOC
    assert fake_run.calls == [
        ["cargo", "build", "--manifest-path=../protobuf-codegen/Cargo.toml"],
        ["cargo", "build", "--manifest-path=../protoc-bin-vendored/Cargo.toml", "--bin", "protoc-bin-which"],
        ["cargo", "run", "--manifest-path=../protoc-bin-vendored/Cargo.toml", "--bin", "protoc-bin-which"],
    ]
    assert fake_run.cwds == [tmp_path] * 3


def test_toolchain_from_workspace(tmp_path) -> None:
    tc = Toolchain.from_workspace(tmp_path, protoc="/bin/protoc", system="MSYS_NT-10.0")
    assert tc.protoc == "/bin/protoc"
    assert tc.lang == "rust"
    assert tc.plugin == tmp_path.resolve() / "target" / "debug" / "protoc-gen-rust.exe"

    tc = Toolchain.from_workspace(Path(tmp_path), system="Linux")
    assert tc.plugin.name == "protoc-gen-rust"
