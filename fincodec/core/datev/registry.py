"""
DATEV header version registry.

Maps header version numbers to their definitions. A registry is an explicit
object that callers construct (or take from default_registry()) and pass to
the DATEV parser.
"""

from __future__ import annotations

import threading
from functools import lru_cache
from typing import TYPE_CHECKING

import structlog

from fincodec.core.csv.line import Line
from fincodec.core.errors import UnknownVersionError

from .definitions import builtin_definition_paths, load_definition

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .definitions import VersionDefinition

logger = structlog.get_logger()

# Position of the version number in the meta header (second token)
VERSION_INDEX = 1


class HeaderRegistry:
    """Registry of DATEV meta header definitions by version."""

    def __init__(self, definitions: Iterable[VersionDefinition] = ()) -> None:
        self._definitions: dict[int, VersionDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: VersionDefinition) -> None:
        """Register a definition (replaces an existing one for the version)."""
        self._definitions[definition.version] = definition

    def find(self, version: int) -> VersionDefinition | None:
        return self._definitions.get(version)

    def get(self, version: int) -> VersionDefinition:
        """
        Get the definition for a version.

        Raises:
            UnknownVersionError: If the version is not registered
        """
        definition = self.find(version)
        if definition is None:
            raise UnknownVersionError.create(
                "FC-VER-001",
                "Unknown version",
                f"No DATEV header definition for version {version!r} "
                f"(registered: {self.versions()})",
                context={"version": version, "registered": self.versions()},
            )
        return definition

    def versions(self) -> list[int]:
        return sorted(self._definitions)

    def __contains__(self, version: object) -> bool:
        return version in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    @staticmethod
    def read_version(values: Sequence[str] | Line) -> int | None:
        """Version number from the second meta header token, or None."""
        tokens = values.values() if isinstance(values, Line) else list(values)
        if len(tokens) <= VERSION_INDEX:
            return None
        token = tokens[VERSION_INDEX].strip().strip('"')
        return int(token) if token.isdigit() else None

    def detect(self, values: Sequence[str] | Line) -> VersionDefinition | None:
        """
        Detect the definition for a meta header.

        Returns None when the version token is missing or not registered;
        there is no fallback version.
        """
        version = self.read_version(values)
        if version is None:
            return None
        definition = self.find(version)
        if definition is None:
            logger.debug("Unregistered DATEV version", version=version)
        return definition


_REGISTRY_LOCK = threading.Lock()


def default_registry() -> HeaderRegistry:
    """
    Registry with all shipped definitions.

    Built once on first access and cached; later calls return the same,
    fully populated instance. The lock serializes the first build.
    """
    with _REGISTRY_LOCK:
        return _load_default_registry()


@lru_cache(maxsize=1)
def _load_default_registry() -> HeaderRegistry:
    registry = HeaderRegistry(load_definition(path) for path in builtin_definition_paths())
    logger.debug("DATEV registry loaded", versions=registry.versions())
    return registry


def clear_registry_cache() -> None:
    """Clear the default registry cache (for testing)."""
    with _REGISTRY_LOCK:
        _load_default_registry.cache_clear()
