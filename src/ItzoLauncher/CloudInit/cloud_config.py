"""Cloud-config user-data documents and the ``write_files`` writer.

Only the ``write_files`` section is interpreted; every other top-level key
of the document is accepted and ignored.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from pathlib import Path
from typing import ClassVar, Iterable, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ItzoLauncher.core.errors import SchemaError
from ItzoLauncher.Parameters.decoder import load_strings

from .compression import decompress_if_gzip, is_gzip

LOGGER = logging.getLogger(__name__)

DEFAULT_PERMISSIONS = 0o644

_B64_ENCODINGS = {"b64", "base64"}
_GZIP_ENCODINGS = {"gz", "gzip"}
_GZIP_B64_ENCODINGS = {"gz+b64", "gzip+base64", "gz+base64", "gzip+b64"}


class WriteFile(BaseModel):
    """One entry of the cloud-config ``write_files`` list."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore")

    path: str
    content: str = ""
    permissions: Optional[Union[int, str]] = None
    owner: Optional[str] = None
    encoding: Optional[str] = None

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        normalized = v.lower()
        if normalized not in _B64_ENCODINGS | _GZIP_ENCODINGS | _GZIP_B64_ENCODINGS:
            raise ValueError(f"unsupported write_files encoding {v!r}")
        return normalized

    def decoded_content(self) -> bytes:
        """Return the file content with its transfer encoding removed."""
        if self.encoding is None:
            return self.content.encode("utf-8")
        if self.encoding in _GZIP_ENCODINGS:
            # YAML carries text; a raw gzip stream only survives as latin-1.
            try:
                raw = self.content.encode("latin-1")
            except UnicodeEncodeError as exc:
                raise SchemaError(f"gzip content of {self.path} is not binary-safe: {exc}") from exc
            return self._gunzip(raw)
        try:
            # Line breaks are allowed inside encoded blocks; anything else must be base64.
            raw = base64.b64decode("".join(self.content.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise SchemaError(f"decoding base64 content of {self.path}: {exc}") from exc
        if self.encoding in _GZIP_B64_ENCODINGS:
            return self._gunzip(raw)
        return raw

    def _gunzip(self, raw: bytes) -> bytes:
        if not is_gzip(raw):
            raise SchemaError(
                f"content of {self.path} is declared {self.encoding} but is not gzip data"
            )
        return decompress_if_gzip(raw)


class CloudConfig(BaseModel):
    """Subset of a cloud-config document used by the launcher."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore")

    write_files: List[WriteFile] = Field(default_factory=list)

    @field_validator("write_files", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return [] if v is None else v


def parse_cloud_config(data: bytes) -> CloudConfig:
    """Parse user-data bytes into a :class:`CloudConfig`.

    Raises:
        SchemaError: If the document is not valid YAML, is not a mapping, or
            its ``write_files`` entries are malformed.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SchemaError(f"user-data is not valid UTF-8: {exc}") from exc

    if text.startswith("#!"):
        LOGGER.warning("user-data is a script, not a cloud-config; ignoring it")
        return CloudConfig()
    if text.strip() and not text.startswith("#cloud-config"):
        LOGGER.debug("user-data lacks a #cloud-config header; parsing it as YAML anyway")

    try:
        document = load_strings(text)
    except yaml.YAMLError as exc:
        raise SchemaError(f"parsing cloud-config: {exc}") from exc
    if document is None:
        LOGGER.warning("user-data is empty")
        return CloudConfig()
    if not isinstance(document, dict):
        raise SchemaError(
            f"cloud-config must be a mapping, got {type(document).__name__}"
        )

    try:
        return CloudConfig.model_validate(document)
    except ValidationError as exc:
        raise SchemaError(f"validating cloud-config: {exc}") from exc


def parse_permissions(value: Union[int, str, None]) -> int:
    """Parse a file mode the way ``strconv.ParseInt(s, 0, 32)`` would.

    Examples:
        >>> oct(parse_permissions("0600"))
        '0o600'
        >>> oct(parse_permissions("0o755"))
        '0o755'
        >>> parse_permissions(420) == 0o644
        True
    """
    if value is None or value == "":
        return DEFAULT_PERMISSIONS
    if isinstance(value, int):
        return value
    text = value.strip()
    try:
        if text[:2].lower() in ("0o", "0x", "0b"):
            return int(text, 0)
        if len(text) > 1 and text.startswith("0"):
            return int(text, 8)
        return int(text, 10)
    except ValueError:
        LOGGER.warning("parsing permission %s: invalid file mode, using 0644", value)
        return DEFAULT_PERMISSIONS


def write_files(cloud_config: CloudConfig, paths: Iterable[Union[str, Path]]) -> List[Path]:
    """Write the ``write_files`` entries whose path is one of ``paths``.

    Args:
        cloud_config: Parsed user-data document.
        paths: Paths the caller wants materialised; other entries are skipped.

    Returns:
        The paths that were written, in document order.
    """
    wanted = {Path(p) for p in paths}
    written: List[Path] = []
    for entry in cloud_config.write_files:
        target = Path(entry.path)
        if target not in wanted:
            continue
        content = entry.decoded_content()
        mode = parse_permissions(entry.permissions)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        os.chmod(target, mode)
        LOGGER.info("saved %s", target)
        written.append(target)
    return written


__all__ = [
    "CloudConfig",
    "DEFAULT_PERMISSIONS",
    "WriteFile",
    "parse_cloud_config",
    "parse_permissions",
    "write_files",
]
