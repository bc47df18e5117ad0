"""Construct composer: assembles instances into a composition and validates the graph."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from constructkit.errors import ConstructNotFoundError
from constructkit.layout import grid_position
from constructkit.spec import (
    ConstructComposition,
    ConstructDefinition,
    ConstructInstance,
    ConstructMetadata,
    ValidationIssue,
    ValidationResult,
    slugify,
)

log = logging.getLogger(__name__)

Catalog = Mapping[str, ConstructDefinition]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits: list[str] = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


class ConstructComposer:
    """Builds ConstructCompositions and checks them against a catalog.

    ``clock`` returns seconds since the epoch and feeds the id suffix; pass a
    fixed function for deterministic ids, or replace id generation entirely
    with ``id_factory``.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[str], str] | None = None,
    ):
        self.clock = clock
        self.id_factory = id_factory

    def compose(
        self,
        name: str,
        instance_specs: Iterable[ConstructInstance | Mapping[str, Any]],
        catalog: Catalog,
    ) -> ConstructComposition:
        """Create a composition; raises ConstructNotFoundError on the first unknown construct id."""
        instances = [
            spec if isinstance(spec, ConstructInstance) else ConstructInstance.model_validate(spec)
            for spec in instance_specs
        ]
        for inst in instances:
            if inst.construct_id not in catalog:
                raise ConstructNotFoundError(inst.construct_id)

        total = len(instances)
        placed = [
            inst if inst.position is not None else inst.model_copy(update={"position": grid_position(i, total)})
            for i, inst in enumerate(instances)
        ]

        composition = ConstructComposition(
            id=self._composition_id(name),
            name=name,
            metadata=ConstructMetadata(
                name=name,
                description=f"Composition of {total} constructs",
                version="1.0.0",
                author="constructkit composer",
                category="composition",
                tags=["composition"],
            ),
            instances=placed,
        )
        log.debug("Composed %s with %d instances", composition.id, total)
        return composition

    def validate(self, composition: ConstructComposition, catalog: Catalog) -> ValidationResult:
        """Report every structural problem in one pass. Never raises."""
        errors: list[ValidationIssue] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        seen: set[str] = set()
        for i, inst in enumerate(composition.instances):
            if inst.instance_name in seen:
                errors.append(
                    ValidationIssue(
                        path=f"instances[{i}].instance_name",
                        message=f"Duplicate instance name: {inst.instance_name}",
                    )
                )
            seen.add(inst.instance_name)

        graph = _connection_graph(composition, seen)

        for i, inst in enumerate(composition.instances):
            definition = catalog.get(inst.construct_id)
            if definition is None:
                errors.append(
                    ValidationIssue(
                        path=f"instances[{i}].construct_id",
                        message=f"Construct not found: {inst.construct_id}",
                    )
                )
            else:
                for key, prop in definition.inputs.items():
                    if prop.required and inst.config.get(key) is None:
                        errors.append(
                            ValidationIssue(
                                path=f"instances[{i}].config.{key}",
                                message=f"Required input missing: {key}",
                            )
                        )

            for j, conn in enumerate(inst.connections):
                if conn.target_instance not in seen:
                    errors.append(
                        ValidationIssue(
                            path=f"instances[{i}].connections[{j}].target_instance",
                            message=f"Target instance not found: {conn.target_instance}",
                        )
                    )
                    continue
                if closes_cycle(graph, inst.instance_name, conn.target_instance):
                    errors.append(
                        ValidationIssue(
                            path=f"instances[{i}].connections[{j}]",
                            message=f"Circular dependency detected: {inst.instance_name} -> {conn.target_instance}",
                        )
                    )

        definitions = [d for d in (catalog.get(inst.construct_id) for inst in composition.instances) if d]

        levels = sorted({d.level for d in definitions})
        if len(levels) > 2:
            warnings.append(
                f"Composition spans more than 2 construct levels ({', '.join(levels)}), which may increase complexity"
            )

        providers = sorted({p for d in definitions for p in d.providers})
        if len(providers) > 1:
            warnings.append(
                f"Composition uses multiple providers: {', '.join(providers)}. Ensure cross-provider compatibility."
            )

        has_auth = any(
            "auth" in inst.construct_id.lower() or _category(catalog, inst.construct_id) == "security"
            for inst in composition.instances
        )
        if not has_auth:
            suggestions.append("Consider adding authentication/authorization constructs for security")

        if not any("cost-optimized" in d.metadata.tags for d in definitions):
            suggestions.append("Consider using cost-optimized construct variants where available")

        result = ValidationResult(valid=not errors, errors=errors, warnings=warnings, suggestions=suggestions)
        log.debug(
            "Validated %s: %d errors, %d warnings", composition.id, len(result.errors), len(result.warnings)
        )
        return result

    def _composition_id(self, name: str) -> str:
        if self.id_factory is not None:
            return self.id_factory(name)
        millis = int(self.clock() * 1000)
        return f"comp-{slugify(name)}-{to_base36(millis)}"


def closes_cycle(graph: Mapping[str, list[str]], source: str, target: str) -> bool:
    """True if ``target`` can already reach ``source``, so the edge source->target closes a loop."""
    stack = [target]
    visited: set[str] = set()
    while stack:
        node = stack.pop()
        if node == source:
            return True
        if node in visited:
            continue
        visited.add(node)
        stack.extend(graph.get(node, []))
    return False


def _connection_graph(composition: ConstructComposition, known: set[str]) -> dict[str, list[str]]:
    graph: dict[str, list[str]] = defaultdict(list)
    for inst in composition.instances:
        for conn in inst.connections:
            if conn.target_instance in known:
                graph[inst.instance_name].append(conn.target_instance)
    return graph


def _category(catalog: Catalog, construct_id: str) -> str | None:
    definition = catalog.get(construct_id)
    return definition.metadata.category if definition else None
