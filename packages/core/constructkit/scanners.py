"""Lightweight per-language source scanners.

Each scanner pulls out imports, classes, type bodies and function names with
regular expressions. They are not parsers: nested braces, string literals
containing code and unusual formatting will confuse them. A scanner can be
swapped for a real parser without touching the analyzer, which only sees
``CodeAnalysis``.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import NamedTuple

log = logging.getLogger(__name__)


@dataclass
class ClassDecl:
    name: str
    base: str | None = None


@dataclass
class TypeDecl:
    name: str
    kind: str  # "interface", "type", "struct", "class"
    body: str = ""


@dataclass
class CodeAnalysis:
    imports: list[str] = field(default_factory=list)
    sdk_imports: list[str] = field(default_factory=list)
    classes: list[ClassDecl] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)

    def first_type(self, suffixes: tuple[str, ...]) -> TypeDecl | None:
        """First declared type, in source order, whose name ends with one of ``suffixes``."""
        return next((t for t in self.types if t.name.endswith(suffixes)), None)


class PropertyLine(NamedTuple):
    name: str
    type: str
    optional: bool


class SourceScanner(ABC):
    """Extracts a ``CodeAnalysis`` from source text in one language."""

    language: str = ""

    @abstractmethod
    def scan(self, code: str) -> CodeAnalysis: ...

    @abstractmethod
    def is_sdk_import(self, module: str) -> bool: ...

    def parse_properties(self, body: str) -> list[PropertyLine]:
        """Parse ``name: type;`` / ``name?: type;`` lines out of a type body."""
        return [
            PropertyLine(m.group(1), m.group(3).strip(), bool(m.group(2)))
            for m in _TS_PROP_RE.finditer(body)
        ]


# ---------------------------------------------------------------------------
# TypeScript
# ---------------------------------------------------------------------------

_TS_IMPORT_RE = re.compile(
    r"import\s+(?:type\s+)?(?:\{[^}]*\}|\*\s+as\s+\w+|\w+(?:\s*,\s*\{[^}]*\})?)\s+from\s+['\"]([^'\"]+)['\"]"
)
_TS_REQUIRE_RE = re.compile(r"require\(\s*['\"]([^'\"]+)['\"]\s*\)")
_TS_CLASS_RE = re.compile(
    r"class\s+(\w+)(?:<[^>{]*>)?(?:\s+extends\s+([\w.]+)(?:<[^>{]*>)?)?(?:\s+implements\s+[^{]+)?\s*\{"
)
_TS_INTERFACE_RE = re.compile(r"interface\s+(\w+)(?:<[^>{]*>)?(?:\s+extends\s+[^{]+)?\s*\{([^}]*)\}")
_TS_TYPE_ALIAS_RE = re.compile(r"type\s+(\w+)(?:<[^>=]*>)?\s*=\s*\{([^}]*)\}")
_TS_FUNCTION_RE = re.compile(r"function\s*\*?\s+(\w+)\s*[(<]")
_TS_ARROW_RE = re.compile(r"(?:const|let)\s+(\w+)\s*(?::[^=]+)?=\s*(?:async\s+)?(?:\([^)]*\)|\w+)\s*(?::[^=]+)?=>")
_TS_EXPORT_RE = re.compile(
    r"export\s+(?:default\s+)?(?:abstract\s+)?(?:declare\s+)?(?:class|interface|function|const|let|type|enum)\s+(\w+)"
)
_TS_PROP_RE = re.compile(r"(\w+)(\?)?\s*:\s*([^;]+);")


class TypeScriptScanner(SourceScanner):
    language = "typescript"

    def is_sdk_import(self, module: str) -> bool:
        return module.startswith("@pulumi/")

    def scan(self, code: str) -> CodeAnalysis:
        analysis = CodeAnalysis()

        for m in _TS_IMPORT_RE.finditer(code):
            _add_import(analysis, m.group(1), self)
        for m in _TS_REQUIRE_RE.finditer(code):
            _add_import(analysis, m.group(1), self)

        for m in _TS_CLASS_RE.finditer(code):
            analysis.classes.append(ClassDecl(name=m.group(1), base=m.group(2)))

        for m in _TS_INTERFACE_RE.finditer(code):
            analysis.types.append(TypeDecl(name=m.group(1), kind="interface", body=m.group(2)))
        for m in _TS_TYPE_ALIAS_RE.finditer(code):
            analysis.types.append(TypeDecl(name=m.group(1), kind="type", body=m.group(2)))
        # Interfaces and aliases are matched separately; restore source order
        analysis.types.sort(key=lambda t: _first_offset(code, t))

        analysis.functions = _unique(
            [m.group(1) for m in _TS_FUNCTION_RE.finditer(code)] + [m.group(1) for m in _TS_ARROW_RE.finditer(code)]
        )
        analysis.exports = _unique(m.group(1) for m in _TS_EXPORT_RE.finditer(code))
        return analysis


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------

_PY_FROM_IMPORT_RE = re.compile(r"^\s*from\s+([\w.]+)\s+import\s", re.MULTILINE)
_PY_IMPORT_RE = re.compile(r"^\s*import\s+([\w.]+(?:\s+as\s+\w+)?(?:\s*,\s*[\w.]+(?:\s+as\s+\w+)?)*)", re.MULTILINE)
_PY_CLASS_RE = re.compile(r"^([ \t]*)class\s+(\w+)\s*(?:\(([^)]*)\))?\s*:", re.MULTILINE)
_PY_DEF_RE = re.compile(r"^([ \t]*)(?:async\s+)?def\s+(\w+)\s*\(", re.MULTILINE)
_PY_FIELD_RE = re.compile(r"^(\w+)\s*:\s*([^=#\n]+?)\s*(=.*)?(?:#.*)?$")


class PythonScanner(SourceScanner):
    language = "python"

    def is_sdk_import(self, module: str) -> bool:
        return module.split(".")[0].startswith("pulumi")

    def scan(self, code: str) -> CodeAnalysis:
        analysis = CodeAnalysis()

        for m in _PY_FROM_IMPORT_RE.finditer(code):
            _add_import(analysis, m.group(1), self)
        for m in _PY_IMPORT_RE.finditer(code):
            for part in m.group(1).split(","):
                _add_import(analysis, part.split(" as ")[0].strip(), self)

        for m in _PY_CLASS_RE.finditer(code):
            name = m.group(2)
            bases = [b.strip() for b in (m.group(3) or "").split(",") if b.strip()]
            analysis.classes.append(ClassDecl(name=name, base=bases[0] if bases else None))
            # Classes double as type declarations (dataclasses, TypedDicts, pydantic models)
            body = _indented_block(code, m.end(), len(m.group(1).expandtabs()))
            analysis.types.append(TypeDecl(name=name, kind="class", body=body))

        analysis.functions = _unique(m.group(2) for m in _PY_DEF_RE.finditer(code))
        analysis.exports = _unique(
            [m.group(2) for m in _PY_CLASS_RE.finditer(code) if not m.group(1) and not m.group(2).startswith("_")]
            + [m.group(2) for m in _PY_DEF_RE.finditer(code) if not m.group(1) and not m.group(2).startswith("_")]
        )
        return analysis

    def parse_properties(self, body: str) -> list[PropertyLine]:
        """Annotated fields at the class body's own indentation; a default value marks them optional."""
        lines = [ln for ln in body.splitlines() if ln.strip()]
        if not lines:
            return []
        indent = min(len(ln) - len(ln.lstrip()) for ln in lines)
        props: list[PropertyLine] = []
        for ln in lines:
            if len(ln) - len(ln.lstrip()) != indent:
                continue
            m = _PY_FIELD_RE.match(ln.strip())
            if not m:
                continue
            type_str = m.group(2).strip()
            optional = bool(m.group(3)) or type_str.startswith(("Optional[", "NotRequired[")) or "| None" in type_str
            props.append(PropertyLine(m.group(1), type_str, optional))
        return props


# ---------------------------------------------------------------------------
# Go
# ---------------------------------------------------------------------------

_GO_IMPORT_RE = re.compile(r"import\s+(?:\(\s*([\s\S]*?)\s*\)|(?:\w+\s+)?\"([^\"]+)\")")
_GO_QUOTED_RE = re.compile(r"\"([^\"]+)\"")
_GO_TYPE_RE = re.compile(r"type\s+(\w+)\s+(struct|interface)\s*\{([^}]*)\}")
_GO_FUNC_RE = re.compile(r"func\s+(?:\([^)]*\)\s*)?(\w+)\s*[(\[]")
_GO_FIELD_RE = re.compile(r"^(\w+)\s+(\*?[\w.\[\]*]+)(?:\s+`([^`]*)`)?")


class GoScanner(SourceScanner):
    language = "go"

    def is_sdk_import(self, module: str) -> bool:
        return "pulumi" in module

    def scan(self, code: str) -> CodeAnalysis:
        analysis = CodeAnalysis()

        for m in _GO_IMPORT_RE.finditer(code):
            block = m.group(1)
            paths = _GO_QUOTED_RE.findall(block) if block is not None else [m.group(2)]
            for path in paths:
                _add_import(analysis, path, self)

        for m in _GO_TYPE_RE.finditer(code):
            analysis.types.append(TypeDecl(name=m.group(1), kind=m.group(2), body=m.group(3)))

        analysis.functions = _unique(m.group(1) for m in _GO_FUNC_RE.finditer(code))
        analysis.exports = _unique(
            [t.name for t in analysis.types if t.name[0].isupper()] + [f for f in analysis.functions if f[0].isupper()]
        )
        return analysis

    def parse_properties(self, body: str) -> list[PropertyLine]:
        """Struct fields; pointer types and ``omitempty`` tags mark them optional."""
        props: list[PropertyLine] = []
        for ln in body.splitlines():
            m = _GO_FIELD_RE.match(ln.strip())
            if not m:
                continue
            type_str = m.group(2)
            optional = type_str.startswith("*") or "omitempty" in (m.group(3) or "")
            props.append(PropertyLine(m.group(1), type_str, optional))
        return props


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

BUILTIN_SCANNERS: dict[str, type[SourceScanner]] = {
    "typescript": TypeScriptScanner,
    "python": PythonScanner,
    "go": GoScanner,
}


def get_scanner(language: str) -> SourceScanner | None:
    """Return a scanner for ``language``, or None when no scanner supports it.

    Built-in scanners win over plugins registered under the same language.
    """
    lang = language.lower().strip()
    scanner_cls = BUILTIN_SCANNERS.get(lang)
    if scanner_cls is None:
        from constructkit.plugins import discover_scanners

        scanner_cls = discover_scanners().get(lang)
    if scanner_cls is None:
        log.debug("No source scanner for language %r", language)
        return None
    return scanner_cls()


def _add_import(analysis: CodeAnalysis, module: str, scanner: SourceScanner) -> None:
    if module in analysis.imports:
        return
    analysis.imports.append(module)
    if scanner.is_sdk_import(module):
        analysis.sdk_imports.append(module)


def _indented_block(code: str, start: int, header_indent: int) -> str:
    """Text of the block following a ``class ...:`` header, ending at the first dedent."""
    rest = code[start:]
    first_nl = rest.find("\n")
    if first_nl == -1:
        return ""
    block: list[str] = []
    for line in rest[first_nl + 1 :].splitlines():
        if line.strip() and len(line.expandtabs()) - len(line.expandtabs().lstrip()) <= header_indent:
            break
        block.append(line)
    return "\n".join(block).rstrip()


def _first_offset(code: str, decl: TypeDecl) -> int:
    m = re.search(rf"\b(?:interface|type)\s+{re.escape(decl.name)}\b", code)
    return m.start() if m else len(code)


def _unique(items) -> list[str]:
    return list(dict.fromkeys(items))
