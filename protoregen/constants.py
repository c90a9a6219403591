"""protoregen constants for regenerating the protobuf crate sources."""

# ----------------------------------------------------------------------------
# Compiler version gate
# ----------------------------------------------------------------------------

REQUIRED_PROTOC_PREFIX = "libprotoc 3"
VERSION_MISMATCH_MESSAGE = "you need to use protobuf 3 to regenerate .rs from .proto"

# ----------------------------------------------------------------------------
# Generated code markers
# ----------------------------------------------------------------------------

INSERTION_POINT = "@@protoc_insertion_point"
SPECIAL_FIELD_MARKER = f"// {INSERTION_POINT}(special_field:"
MESSAGE_MARKER = f"// {INSERTION_POINT}(message:"

SERDE_SKIP_ATTR = "#[cfg_attr(serde, serde(skip))]"
SERDE_DERIVE_ATTR = "#[cfg_attr(serde, derive(::serde::Serialize, ::serde::Deserialize))]"

# ----------------------------------------------------------------------------
# Layout
# ----------------------------------------------------------------------------

DEFAULT_LANG = "rust"
DEFAULT_TMP_DIR = "tmp-generated"
GENERATED_SUFFIX = ".rs"
TMP_SUFFIX = ".tmp"

PROTOC_WHICH_BIN = "protoc-bin-which"

# Executable suffix per `platform.system()` / `uname` prefix
EXE_SUFFIXES = {
    "Linux": "",
    "Darwin": "",
    "Windows": ".exe",
    "MSYS_NT": ".exe",
    "MINGW": ".exe",
    "CYGWIN_NT": ".exe",
}
