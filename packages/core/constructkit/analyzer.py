"""Construct analyzer: turns source text plus declared metadata into a ConstructDefinition."""

from __future__ import annotations

import logging
import re

from constructkit.scanners import CodeAnalysis, SourceScanner, TypeDecl, get_scanner
from constructkit.spec import (
    ConstructDefinition,
    ConstructLevel,
    ConstructMetadata,
    Implementation,
    PropertySpec,
    SecurityConsideration,
    slugify,
)

log = logging.getLogger(__name__)

# Ordered: first match wins
_CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("api", "gateway"), "api"),
    (("database", "db"), "database"),
    (("storage", "bucket"), "storage"),
    (("queue", "topic"), "messaging"),
    (("function", "lambda"), "compute"),
    (("auth", "identity"), "security"),
    (("network", "vpc"), "networking"),
    (("monitor", "log"), "observability"),
)
_DEFAULT_CATEGORY = "general"

# import substring -> technology tag
_FRAMEWORK_TAGS: tuple[tuple[str, str], ...] = (
    ("express", "express"),
    ("fastapi", "fastapi"),
    ("flask", "flask"),
    ("django", "django"),
    ("@nestjs", "nestjs"),
    ("gin-gonic", "gin"),
)

_FEATURE_TAGS = ("serverless", "container", "microservice", "rest", "graphql", "websocket")

RUNTIMES = {
    "typescript": "nodejs",
    "python": "python",
    "go": "go",
}
_DEFAULT_RUNTIME = "nodejs"

_INPUT_SUFFIXES = ("Args", "Config", "Props")
_OUTPUT_SUFFIXES = ("Outputs", "Result")

_REF_RE = re.compile(r"^Ref<(.+)>$")

_SECRET_RE = re.compile(
    r"(?:[\"'](?:password|secret|key|token)[\"']|\b(?:password|passwd|secret|api_?key|access_?key|token)\b)"
    r"\s*[:=]\s*[\"'][^\"']+[\"']",
    re.IGNORECASE,
)
_ENCRYPTION_RE = re.compile(r"encrypt|kms|tls|ssl", re.IGNORECASE)
_PUBLIC_RE = re.compile(
    r"[\"']public[\w-]*[\"']|\bpublic_?(?:access|read|ip)\w*|0\.0\.0\.0|::/0",
    re.IGNORECASE,
)
_IAM_RE = re.compile(r"iam|role|policy", re.IGNORECASE)
_FIREBASE_RULES_RE = re.compile(r"rules|auth", re.IGNORECASE)


class ConstructAnalyzer:
    """Extracts construct metadata, interface and security notes from source code."""

    def __init__(self, scanners: dict[str, SourceScanner] | None = None):
        # Explicit scanners take precedence over the built-in/plugin registry
        self.scanners = {k.lower(): v for k, v in (scanners or {}).items()}

    def get_dependencies(self, construct: ConstructDefinition) -> set[str]:
        """Declared dependencies plus every construct referenced by a ``Ref<id.attr>`` input type."""
        deps = set(construct.dependencies)
        for spec in construct.inputs.values():
            m = _REF_RE.match(spec.type.strip())
            # Ref<id> without an attribute names no output, so it is not a dependency
            if m and "." in m.group(1):
                deps.add(m.group(1).split(".", 1)[0].strip())
        return deps

    def create_from_code(
        self,
        name: str,
        description: str,
        level: ConstructLevel,
        source_code: str,
        language: str,
        provider: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> ConstructDefinition:
        """Build a ConstructDefinition from source text.

        Nothing here raises on odd input: an unknown language yields an empty
        analysis, a missing Args/Outputs type yields empty inputs/outputs.
        """
        scanner = self._scanner(language)
        analysis = scanner.scan(source_code) if scanner else CodeAnalysis()

        inputs, outputs = self.extract_interface(analysis, scanner)

        metadata = ConstructMetadata(
            name=name,
            description=description,
            version="1.0.0",
            author="constructkit analyzer",
            category=category or infer_category(name),
            tags=infer_tags(name, analysis, provider, explicit=tags),
        )

        return ConstructDefinition(
            id=construct_id(name, provider, level),
            level=level,
            metadata=metadata,
            providers=[provider],
            inputs=inputs,
            outputs=outputs,
            dependencies=[],
            security=scan_security(source_code, provider),
            implementation=Implementation(
                type="pulumi",
                source=source_code,
                runtime=RUNTIMES.get(language.lower(), _DEFAULT_RUNTIME),
                packages=list(analysis.sdk_imports),
            ),
        )

    def analyze_code(self, source_code: str, language: str) -> CodeAnalysis:
        scanner = self._scanner(language)
        return scanner.scan(source_code) if scanner else CodeAnalysis()

    def extract_interface(
        self, analysis: CodeAnalysis, scanner: SourceScanner | None
    ) -> tuple[dict[str, PropertySpec], dict[str, PropertySpec]]:
        """Inputs from the first ``*Args|*Config|*Props`` type, outputs from the first ``*Outputs|*Result``."""
        if scanner is None:
            return {}, {}
        inputs = _properties(analysis.first_type(_INPUT_SUFFIXES), scanner, "property")
        outputs = _properties(analysis.first_type(_OUTPUT_SUFFIXES), scanner, "output")
        return inputs, outputs

    def _scanner(self, language: str) -> SourceScanner | None:
        scanner = self.scanners.get(language.lower()) or get_scanner(language)
        if scanner is None:
            log.debug("Unsupported analysis language %r; using an empty analysis", language)
        return scanner


def construct_id(name: str, provider: str, level: str) -> str:
    return f"{provider}-{level.lower()}-{slugify(name)}"


def infer_category(name: str) -> str:
    lowered = name.lower()
    for keywords, category in _CATEGORY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return category
    return _DEFAULT_CATEGORY


def infer_tags(name: str, analysis: CodeAnalysis, provider: str, explicit: list[str] | None = None) -> list[str]:
    """Provider tag first, then explicit tags if given, otherwise framework and feature tags."""
    tags: dict[str, None] = {provider: None}
    if explicit is not None:
        tags.update(dict.fromkeys(explicit))
        return list(tags)

    for needle, tag in _FRAMEWORK_TAGS:
        if any(needle in module for module in analysis.imports):
            tags[tag] = None

    lowered = name.lower()
    for feature in _FEATURE_TAGS:
        if feature in lowered:
            tags[feature] = None
    return list(tags)


def scan_security(source_code: str, provider: str) -> list[SecurityConsideration]:
    """Independent pattern checks over raw source; any number of them may fire."""
    found: list[SecurityConsideration] = []

    if _SECRET_RE.search(source_code):
        found.append(
            SecurityConsideration(
                type="other",
                description="Potential hardcoded secrets detected",
                severity="critical",
                mitigation="Use environment variables or secret management service",
            )
        )

    if not _ENCRYPTION_RE.search(source_code):
        found.append(
            SecurityConsideration(
                type="encryption",
                description="No encryption configuration detected",
                severity="medium",
                mitigation="Enable encryption at rest and in transit",
            )
        )

    if _PUBLIC_RE.search(source_code):
        found.append(
            SecurityConsideration(
                type="network",
                description="Potential public access configuration",
                severity="high",
                mitigation="Restrict access to specific IP ranges or VPCs",
            )
        )

    if provider == "aws" and not _IAM_RE.search(source_code):
        found.append(
            SecurityConsideration(
                type="access-control",
                description="No IAM configuration detected",
                severity="high",
                mitigation="Configure least-privilege IAM roles and policies",
            )
        )
    elif provider == "firebase" and not _FIREBASE_RULES_RE.search(source_code):
        found.append(
            SecurityConsideration(
                type="access-control",
                description="No Firebase security rules detected",
                severity="high",
                mitigation="Configure Firebase security rules",
            )
        )

    return found


def _properties(decl: TypeDecl | None, scanner: SourceScanner, noun: str) -> dict[str, PropertySpec]:
    if decl is None or not decl.body:
        return {}
    return {
        prop.name: PropertySpec(type=prop.type, description=f"{prop.name} {noun}", required=not prop.optional)
        for prop in scanner.parse_properties(decl.body)
    }
