"""
File rules.

A file is a pathlib.Path to an existing file, a mapping with `filename` and
`size`, or an upload-like object exposing `filename`, `size`,
`content_type` and optionally `read()` (sync or async).

Sizes accept bytes ("2048") or units ("500KB", "2MB", "1GB").
"""

import asyncio
import inspect
import mimetypes
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from modules.validation.core.base import RuleHandler, TypeScopedRule
from modules.validation.core.registry import register_rule

SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}
_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B)?\s*$", re.IGNORECASE)

# Leading bytes of common image formats
IMAGE_SIGNATURES = (
    b"\x89PNG\r\n\x1a\n",
    b"\xff\xd8\xff",
    b"GIF87a",
    b"GIF89a",
    b"BM",
)
HEADER_SIZE = 16

_EXTENSION_ALIASES = {"jpg": "jpeg", "jpeg": "jpeg", "tif": "tiff"}


def parse_size(text: str) -> int:
    """
    Parse a size parameter into bytes.

    Example:
        parse_size("2MB") -> 2097152
    """
    match = _SIZE_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid file size '{text}'")
    amount, unit = match.groups()
    return int(float(amount) * SIZE_UNITS[(unit or "B").upper()])


def _attribute(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def file_name(value: Any) -> Optional[str]:
    if isinstance(value, Path):
        return value.name
    name = _attribute(value, "filename") or _attribute(value, "name")
    return str(name) if name else None


def file_size(value: Any) -> Optional[int]:
    if isinstance(value, Path):
        return value.stat().st_size if value.is_file() else None
    size = _attribute(value, "size")
    return int(size) if isinstance(size, (int, float)) and not isinstance(size, bool) else None


def content_type(value: Any) -> Optional[str]:
    declared = None if isinstance(value, Path) else _attribute(value, "content_type")
    if declared:
        return str(declared).split(";")[0].strip().lower()
    name = file_name(value)
    return mimetypes.guess_type(name)[0] if name else None


def extension(value: Any) -> str:
    name = file_name(value) or ""
    return Path(name).suffix.lstrip(".").lower()


def is_file(value: Any) -> bool:
    if isinstance(value, Path):
        return value.is_file()
    return file_name(value) is not None and file_size(value) is not None


async def read_header(value: Any, size: int = HEADER_SIZE) -> Optional[bytes]:
    """First bytes of the file, or None when the content is not readable"""
    if isinstance(value, Path):
        return await asyncio.to_thread(_read_path_header, value, size)

    content = _attribute(value, "content")
    if isinstance(content, (bytes, bytearray)):
        return bytes(content[:size])

    reader = getattr(value, "read", None)
    if reader is None:
        return None
    header = reader(size)
    if inspect.isawaitable(header):
        header = await header

    rewind = getattr(value, "seek", None)
    if rewind is not None:
        rewound = rewind(0)
        if inspect.isawaitable(rewound):
            await rewound
    return header if isinstance(header, bytes) else None


def _read_path_header(path: Path, size: int) -> bytes:
    with open(path, "rb") as f:
        return f.read(size)


def is_image_header(header: bytes) -> bool:
    if header.startswith(IMAGE_SIGNATURES):
        return True
    return header[:4] == b"RIFF" and header[8:12] == b"WEBP"


@register_rule("file")
class FileRule(RuleHandler):
    def validate(self, value, params, context):
        return is_file(value)

    def message(self, params, context):
        return context.message("file", "The :attribute field must be a file.")

    def describe(self, params):
        return "a file"


@register_rule("min", parent="file")
class FileMinRule(TypeScopedRule):
    def bind(self, params):
        self.min = parse_size(params[0])

    def validate(self, value, params, context):
        size = file_size(value)
        return size is not None and size >= self.min

    def message(self, params, context):
        return self.render(context, "The :attribute field must be at least :min.", {"min": self.params[0]})

    def describe(self, params):
        return f"at least {self.params[0]}"


@register_rule("max", parent="file")
class FileMaxRule(TypeScopedRule):
    def bind(self, params):
        self.max = parse_size(params[0])

    def validate(self, value, params, context):
        size = file_size(value)
        return size is not None and size <= self.max

    def message(self, params, context):
        return self.render(context, "The :attribute field must not be greater than :max.", {"max": self.params[0]})

    def describe(self, params):
        return f"at most {self.params[0]}"


@register_rule("mimes", parent="file")
class MimesRule(TypeScopedRule):
    """mimes:jpg,png,pdf or mimes:image/png - content type or extension must match"""

    def bind(self, params):
        self.allowed = {param.strip().lower() for param in params}
        self.normalized = {_EXTENSION_ALIASES.get(param, param) for param in self.allowed}

    def validate(self, value, params, context):
        mime = content_type(value)
        if mime and mime in self.allowed:
            return True
        subtype = mime.split("/")[-1] if mime else None
        if subtype and _EXTENSION_ALIASES.get(subtype, subtype) in self.normalized:
            return True
        ext = extension(value)
        return bool(ext) and _EXTENSION_ALIASES.get(ext, ext) in self.normalized

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a file of type: :values.", {"values": self.params})

    def describe(self, params):
        return f"one of these types: {', '.join(self.params)}"


@register_rule("extensions", parent="file")
class ExtensionsRule(TypeScopedRule):
    def validate(self, value, params, context):
        return extension(value) in {param.strip().lower().lstrip(".") for param in self.params}

    def message(self, params, context):
        return self.render(
            context,
            "The :attribute field must have one of the following extensions: :values.",
            {"values": self.params}
        )


@register_rule("image", parent="file")
class ImageRule(TypeScopedRule):
    """Inspects the file header; falls back to the declared content type"""

    def validate(self, value, params, context):
        return self._validate_image(value)

    async def _validate_image(self, value: Any) -> bool:
        header = await read_header(value)
        if header:
            return is_image_header(header)
        mime = content_type(value)
        return bool(mime) and mime.startswith("image/")

    def message(self, params, context):
        return self.render(context, "The :attribute field must be an image.")

    def describe(self, params):
        return "an image"
