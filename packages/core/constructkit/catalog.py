"""Read-only construct catalog backed by a directory of YAML definitions."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from constructkit.errors import ConstructNotFoundError
from constructkit.spec import ConstructDefinition

log = logging.getLogger(__name__)

CATALOG_GLOB = "**/*.construct.yaml"


class ConstructCatalog(Mapping[str, ConstructDefinition]):
    """Construct definitions keyed by id.

    Writing definitions is left to whoever owns the directory; the catalog
    only reads and searches.
    """

    def __init__(self, constructs: Iterable[ConstructDefinition] = ()):
        self._constructs: dict[str, ConstructDefinition] = {c.id: c for c in constructs}

    @classmethod
    def from_directory(cls, path: str | Path) -> ConstructCatalog:
        root = Path(path)
        if not root.is_dir():
            raise FileNotFoundError(f"Catalog directory not found: {root}")

        constructs = []
        for file in sorted(root.glob(CATALOG_GLOB)):
            try:
                constructs.append(ConstructDefinition.from_file(file))
            except (yaml.YAMLError, ValidationError) as e:
                log.warning("Skipping %s: %s", file, e)
        log.debug("Loaded %d constructs from %s", len(constructs), root)
        return cls(constructs)

    def __getitem__(self, construct_id: str) -> ConstructDefinition:
        return self._constructs[construct_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._constructs)

    def __len__(self) -> int:
        return len(self._constructs)

    def require(self, construct_id: str) -> ConstructDefinition:
        try:
            return self._constructs[construct_id]
        except KeyError:
            raise ConstructNotFoundError(construct_id) from None

    def search(
        self,
        query: str | None = None,
        level: str | None = None,
        provider: str | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> list[ConstructDefinition]:
        """Filter by substring on id, name, description and tags, exact match on everything else."""
        results = []
        needle = query.lower() if query else None
        for c in self._constructs.values():
            if needle and not _matches_text(c, needle):
                continue
            if level and c.level != level:
                continue
            if provider and provider not in c.providers:
                continue
            if category and c.metadata.category != category:
                continue
            if tags and not set(tags) <= set(c.metadata.tags):
                continue
            results.append(c)
        return results

    def dependencies(self, construct_id: str) -> set[str]:
        from constructkit.analyzer import ConstructAnalyzer

        return ConstructAnalyzer().get_dependencies(self.require(construct_id))


def _matches_text(construct: ConstructDefinition, needle: str) -> bool:
    haystack = [construct.id, construct.metadata.name, construct.metadata.description, *construct.metadata.tags]
    return any(needle in field.lower() for field in haystack)
