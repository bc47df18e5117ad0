"""Constructkit: analyze, compose, price and diagram infrastructure constructs."""

from constructkit.errors import ConstructKitError, ConstructNotFoundError, UnsupportedFormatError
from constructkit.spec import (
    C4Diagram,
    Connection,
    ConstructComposition,
    ConstructDefinition,
    ConstructInstance,
    ConstructMetadata,
    CostEstimate,
    CostLineItem,
    CostModel,
    CostTotals,
    Implementation,
    Position,
    PropertySpec,
    SecurityConsideration,
    SecurityRecommendation,
    Usage,
    UsagePrice,
    ValidationIssue,
    ValidationResult,
)

__version__ = "0.1.0"

__all__ = [
    "C4Diagram",
    "Connection",
    "ConstructAnalyzer",
    "ConstructCatalog",
    "ConstructComposer",
    "ConstructComposition",
    "ConstructDefinition",
    "ConstructInstance",
    "ConstructKitError",
    "ConstructMetadata",
    "ConstructNotFoundError",
    "CostCalculator",
    "CostEstimate",
    "CostLineItem",
    "CostModel",
    "CostTotals",
    "DiagramGenerator",
    "Implementation",
    "Position",
    "PropertySpec",
    "SecurityAnalyzer",
    "SecurityConsideration",
    "SecurityRecommendation",
    "UnsupportedFormatError",
    "Usage",
    "UsagePrice",
    "ValidationIssue",
    "ValidationResult",
]


def __getattr__(name: str):
    # Engines load lazily so importing the data model stays cheap
    if name == "ConstructAnalyzer":
        from constructkit.analyzer import ConstructAnalyzer

        return ConstructAnalyzer
    if name == "ConstructComposer":
        from constructkit.composer import ConstructComposer

        return ConstructComposer
    if name == "CostCalculator":
        from constructkit.cost import CostCalculator

        return CostCalculator
    if name == "DiagramGenerator":
        from constructkit.exporter import DiagramGenerator

        return DiagramGenerator
    if name == "SecurityAnalyzer":
        from constructkit.security import SecurityAnalyzer

        return SecurityAnalyzer
    if name == "ConstructCatalog":
        from constructkit.catalog import ConstructCatalog

        return ConstructCatalog
    raise AttributeError(f"module 'constructkit' has no attribute {name!r}")
