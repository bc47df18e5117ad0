"""Construct data model: the types every engine reads and produces.

Definitions come out of the analyzer and live in an external catalog;
compositions come out of the composer. Cost estimates, validation results
and diagrams are recomputed on every call and never stored here.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

ConstructLevel = Literal["L0", "L1", "L2", "L3"]
DiagramLevel = Literal["context", "container", "component", "code"]
DiagramFormat = Literal["json", "plantuml", "mermaid"]
Severity = Literal["critical", "high", "medium", "low"]

LEVELS: tuple[str, ...] = ("L0", "L1", "L2", "L3")

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lower-case ``name`` and collapse every non-alphanumeric run into a single dash."""
    return _SLUG_RE.sub("-", name.lower()).strip("-")


class ConstructMetadata(BaseModel):
    name: str
    description: str = ""
    version: str = "1.0.0"
    author: str = ""
    category: str = "general"
    tags: list[str] = Field(default_factory=list)


class PropertySpec(BaseModel):
    """A named input or output of a construct."""

    type: str
    description: str = ""
    required: bool = False
    default: Any = None


class SecurityConsideration(BaseModel):
    type: str
    description: str
    severity: Severity = "medium"
    mitigation: str = ""


class UsagePrice(BaseModel):
    unit: str
    cost: float


class CostModel(BaseModel):
    provider: str
    base_cost: float = 0.0
    currency: str = "USD"
    usage: dict[str, UsagePrice] = Field(default_factory=dict)

    @field_validator("usage")
    @classmethod
    def validate_usage_keys(cls, v: dict[str, UsagePrice]) -> dict[str, UsagePrice]:
        unknown = set(v) - {"requests", "storage", "compute"}
        if unknown:
            raise ValueError(f"Unknown usage dimensions: {', '.join(sorted(unknown))}")
        return v


class Implementation(BaseModel):
    type: str = "pulumi"
    source: str = ""
    runtime: str = ""
    packages: list[str] = Field(default_factory=list)


class _YamlModel(BaseModel):
    def to_yaml(self) -> str:
        data = _clean_empty(self.model_dump(exclude_none=True))
        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent, exclude_none=True)

    @classmethod
    def from_yaml(cls, yaml_str: str):
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: str | Path):
        p = Path(path)
        text = p.read_text()
        if p.suffix in (".yaml", ".yml"):
            return cls.from_yaml(text)
        return cls.model_validate_json(text)


class ConstructDefinition(_YamlModel):
    """A reusable, versioned infrastructure building block. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str
    level: ConstructLevel
    metadata: ConstructMetadata
    providers: list[str] = Field(default_factory=list)
    inputs: dict[str, PropertySpec] = Field(default_factory=dict)
    outputs: dict[str, PropertySpec] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)
    security: list[SecurityConsideration] = Field(default_factory=list)
    costs: list[CostModel] = Field(default_factory=list)
    implementation: Implementation = Field(default_factory=Implementation)

    def cost_model(self, provider: str) -> CostModel | None:
        return next((c for c in self.costs if c.provider == provider), None)


class Position(BaseModel):
    x: float
    y: float


class Connection(BaseModel):
    target_instance: str
    type: str = "sync"
    config: dict[str, Any] = Field(default_factory=dict)


class ConstructInstance(BaseModel):
    construct_id: str
    instance_name: str
    config: dict[str, Any] = Field(default_factory=dict)
    connections: list[Connection] = Field(default_factory=list)
    position: Position | None = None


class ConstructComposition(_YamlModel):
    """A directed graph of named construct instances."""

    id: str
    name: str
    metadata: ConstructMetadata
    instances: list[ConstructInstance] = Field(default_factory=list)

    def instance(self, instance_name: str) -> ConstructInstance | None:
        return next((i for i in self.instances if i.instance_name == instance_name), None)


class ValidationIssue(BaseModel):
    path: str
    message: str
    severity: Literal["error"] = "error"


class ValidationResult(BaseModel):
    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class Usage(BaseModel):
    """Monthly usage assumptions: request count, storage GB, compute hours."""

    requests: float | None = None
    storage: float | None = None
    compute: float | None = None

    def is_empty(self) -> bool:
        return not (self.requests or self.storage or self.compute)


class CostLineItem(BaseModel):
    item: str
    cost: float  # unit price
    unit: str = "month"
    quantity: float = 1

    @computed_field  # type: ignore[prop-decorator]
    @property
    def subtotal(self) -> float:
        return self.cost * self.quantity


class CostTotals(BaseModel):
    hourly: float = 0.0
    daily: float = 0.0
    monthly: float = 0.0
    yearly: float = 0.0

    @classmethod
    def from_monthly(cls, monthly: float) -> CostTotals:
        return cls(hourly=monthly / (30 * 24), daily=monthly / 30, monthly=monthly, yearly=monthly * 12)


class CostEstimate(BaseModel):
    provider: str
    region: str | None = None
    breakdown: list[CostLineItem] = Field(default_factory=list)
    total: CostTotals = Field(default_factory=CostTotals)
    assumptions: list[str] = Field(default_factory=list)


class DiagramMetadata(BaseModel):
    title: str
    description: str = ""
    author: str = ""
    version: str = "1.0.0"


class C4Diagram(BaseModel):
    level: DiagramLevel
    format: DiagramFormat
    content: str | dict[str, Any]
    metadata: DiagramMetadata


class SecurityRecommendation(BaseModel):
    construct_id: str | None = None
    type: str
    severity: Severity
    description: str
    recommendation: str
    references: list[str] = Field(default_factory=list)


def _clean_empty(d: Any) -> Any:
    if isinstance(d, dict):
        return {k: _clean_empty(v) for k, v in d.items() if v not in ([], {}, None, "")}
    if isinstance(d, list):
        return [_clean_empty(i) for i in d]
    return d
