import re
from pathlib import PurePosixPath
from uuid import uuid4

# Characters rejected by common file systems, plus ASCII control characters.
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_RESERVED_SEGMENTS = frozenset({"", ".", ".."})


def sanitize_filename(filename: str) -> str:
    return _INVALID_FILENAME_CHARS.sub("_", filename)


def _extension(filename: str) -> str:
    # Only the last path component carries the extension; backslashes count too.
    name = filename.replace("\\", "/")
    return PurePosixPath(name).suffix


def resolve_filename(
    original_file_name: str,
    custom_file_name: str | None = None,
    preserve_filename: bool = True,
) -> str:
    """Pick the final object name: custom name, then original, then a fresh UUID."""
    if custom_file_name:
        name = custom_file_name
    elif preserve_filename:
        name = original_file_name
    else:
        name = f"{uuid4()}{_extension(original_file_name)}"

    name = sanitize_filename(name)
    if name in _RESERVED_SEGMENTS:
        # Empty or dot-only names would leave an empty or relative key segment.
        name = f"{uuid4()}{_extension(original_file_name)}"
    return name


def _path_segments(path: str | None) -> list[str]:
    return [
        segment
        for segment in (path or "").split("/")
        if segment not in _RESERVED_SEGMENTS
    ]


def build_key(
    original_file_name: str,
    folder: str | None = None,
    custom_file_name: str | None = None,
    preserve_filename: bool = True,
    prefix: str | None = None,
) -> str:
    """Build an object key of the form ``[prefix/][folder/]filename``.

    The configured prefix is always the outermost segment, so a caller-supplied
    folder can only ever nest below it. Nested folders such as ``a/b`` are kept;
    empty, ``.`` and ``..`` segments are dropped.
    """
    parts = _path_segments(prefix) + _path_segments(folder)
    parts.append(resolve_filename(original_file_name, custom_file_name, preserve_filename))
    return "/".join(parts)
