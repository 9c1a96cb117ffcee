"""
DATEV version definitions.

A version definition describes the meta header (first line) of one DATEV
header version: the ordered field descriptors with label, validation
pattern, quoting and default value. It also lists the format categories and
the well-known Buchungsstapel columns.

Definitions ship as YAML files next to this module (definitions/v*.yaml).
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from fincodec.core.csv.line import HeaderLine

DEFINITIONS_DIR = Path(__file__).parent / "definitions"


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


class MetaFieldDescriptor(BaseModel, frozen=True):
    """One field of the DATEV meta header."""

    position: int = Field(ge=1, description="1-based position in the meta header")
    key: str = Field(description="Stable identifier, e.g. 'beraternummer'")
    label: str = Field(description="DATEV label, e.g. 'Beraternummer'")
    pattern: str | None = Field(
        default=None,
        description="Regex for the logical (unquoted) value",
    )
    quoted: bool = Field(default=False, description="Value is written in enclosures")
    default: str | None = Field(default=None, description="Value of a new meta header")

    model_config = {"frozen": True}

    def matches(self, value: str) -> bool:
        """True if value satisfies the pattern (or there is none)."""
        if self.pattern is None:
            return True
        return _compile(self.pattern).fullmatch(value) is not None


class ColumnDefinition(BaseModel, frozen=True):
    """A well-known column of the field header (second line)."""

    key: str
    label: str
    synonyms: list[str] = Field(default_factory=list)
    required: bool = False

    model_config = {"frozen": True}

    def matches(self, name: str) -> bool:
        name = name.strip().lower()
        return name == self.label.lower() or any(s.lower() == name for s in self.synonyms)


class VersionDefinition(BaseModel, frozen=True):
    """Meta header definition for one DATEV header version."""

    version: int
    name: str
    meta_fields: tuple[MetaFieldDescriptor, ...]
    format_categories: dict[int, str] = Field(default_factory=dict)
    booking_columns: tuple[ColumnDefinition, ...] = Field(default=())

    model_config = {"frozen": True}

    def field_count(self) -> int:
        return len(self.meta_fields)

    def field(self, ref: str | int | MetaFieldDescriptor) -> MetaFieldDescriptor:
        """
        Resolve a field by key, 1-based position or descriptor.

        Raises:
            KeyError: If the field is not part of this version
        """
        if isinstance(ref, MetaFieldDescriptor):
            ref = ref.key
        if isinstance(ref, int):
            if 1 <= ref <= len(self.meta_fields):
                return self.meta_fields[ref - 1]
            raise KeyError(f"No meta header field at position {ref} in version {self.version}")
        for descriptor in self.meta_fields:
            if descriptor.key == ref:
                return descriptor
        raise KeyError(f"Unknown meta header field {ref!r} in version {self.version}")

    def default_value(self, ref: str | int | MetaFieldDescriptor) -> str | None:
        return self.field(ref).default

    def category_name(self, category: int) -> str | None:
        return self.format_categories.get(category)

    def required_columns(self) -> list[ColumnDefinition]:
        return [c for c in self.booking_columns if c.required]

    def column(self, key: str) -> ColumnDefinition:
        for column in self.booking_columns:
            if column.key == key:
                return column
        raise KeyError(f"Unknown booking column {key!r}")

    def find_column_index(self, header: HeaderLine, key: str) -> int:
        """Index of a well-known column in a field header (label or synonym), or -1."""
        column = self.column(key)
        for index, name in enumerate(header.names()):
            if column.matches(name):
                return index
        return -1


def load_definition(path: Path) -> VersionDefinition:
    """Load a version definition from YAML."""
    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f)

    meta_fields = [
        MetaFieldDescriptor(position=position, **field_data)
        for position, field_data in enumerate(data.get("meta_fields", []), start=1)
    ]

    return VersionDefinition(
        version=data["version"],
        name=data.get("name", f"DATEV V{data['version']}"),
        meta_fields=tuple(meta_fields),
        format_categories=data.get("format_categories", {}),
        booking_columns=tuple(
            ColumnDefinition(**column) for column in data.get("booking_columns", [])
        ),
    )


def builtin_definition_paths() -> list[Path]:
    """All shipped definition files, sorted by name."""
    return sorted(DEFINITIONS_DIR.glob("v*.yaml"))
