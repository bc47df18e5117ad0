"""Tests for the per-language source scanners and scanner plugins."""

from __future__ import annotations

import pytest
from constructkit import plugins
from constructkit.scanners import (
    CodeAnalysis,
    GoScanner,
    PropertyLine,
    PythonScanner,
    SourceScanner,
    TypeScriptScanner,
    get_scanner,
)

TS_SOURCE = """\
import { Bucket } from "@pulumi/aws/s3";
import type { Input } from "@pulumi/pulumi";
const fs = require("fs");

export type WidgetProps = { size: number; };

export interface WidgetArgs {
    label: string;
}

export function handler(event: any) {
    return event;
}

export const build = async (x: number) => {
    return x;
};

class Widget extends Base {}
"""

PY_SOURCE = '''\
from dataclasses import dataclass
from typing import Optional
import pulumi
import pulumi_aws as aws, json


@dataclass
class BucketArgs:
    """Inputs."""

    name: str
    versioned: bool = False
    region: Optional[str]
    tags: dict[str, str] | None

    def validate(self):
        size: int = 3
        return size


class BucketOutputs(pulumi.ComponentResource):
    arn: str


def make_bucket(args: BucketArgs):
    pass


def _helper():
    pass
'''

GO_SOURCE = """\
package main

import (
    "fmt"
    "github.com/pulumi/pulumi-aws/sdk/v6/go/aws/s3"
    "github.com/pulumi/pulumi/sdk/v3/go/pulumi"
)

type BucketArgs struct {
    Name      string
    Versioned *bool
    Tags      map[string]string `json:"tags,omitempty"`
}

type bucketOutputs struct {
    Arn string
}

func NewBucket(ctx *pulumi.Context, name string) error {
    return nil
}

func helper() {}
"""


class TestTypeScriptScanner:
    @pytest.fixture
    def analysis(self) -> CodeAnalysis:
        return TypeScriptScanner().scan(TS_SOURCE)

    def test_imports(self, analysis):
        assert analysis.imports == ["@pulumi/aws/s3", "@pulumi/pulumi", "fs"]
        assert analysis.sdk_imports == ["@pulumi/aws/s3", "@pulumi/pulumi"]

    def test_types_in_source_order(self, analysis):
        assert [(t.name, t.kind) for t in analysis.types] == [("WidgetProps", "type"), ("WidgetArgs", "interface")]
        assert analysis.first_type(("Args", "Props")).name == "WidgetProps"

    def test_classes_functions_exports(self, analysis):
        assert [(c.name, c.base) for c in analysis.classes] == [("Widget", "Base")]
        assert analysis.functions == ["handler", "build"]
        assert analysis.exports == ["WidgetProps", "WidgetArgs", "handler", "build"]

    def test_parse_properties(self):
        props = TypeScriptScanner().parse_properties("id: string; port?: number;")
        assert props == [PropertyLine("id", "string", False), PropertyLine("port", "number", True)]


class TestPythonScanner:
    @pytest.fixture
    def analysis(self) -> CodeAnalysis:
        return PythonScanner().scan(PY_SOURCE)

    def test_imports(self, analysis):
        assert analysis.imports == ["dataclasses", "typing", "pulumi", "pulumi_aws", "json"]
        assert analysis.sdk_imports == ["pulumi", "pulumi_aws"]

    def test_classes_are_types(self, analysis):
        assert [(c.name, c.base) for c in analysis.classes] == [
            ("BucketArgs", None),
            ("BucketOutputs", "pulumi.ComponentResource"),
        ]
        assert [t.name for t in analysis.types] == ["BucketArgs", "BucketOutputs"]

    def test_functions_and_exports(self, analysis):
        assert analysis.functions == ["validate", "make_bucket", "_helper"]
        assert analysis.exports == ["BucketArgs", "BucketOutputs", "make_bucket"]

    def test_fields_at_class_level_only(self, analysis):
        scanner = PythonScanner()
        props = scanner.parse_properties(analysis.first_type(("Args",)).body)
        assert props == [
            PropertyLine("name", "str", False),
            PropertyLine("versioned", "bool", True),
            PropertyLine("region", "Optional[str]", True),
            PropertyLine("tags", "dict[str, str] | None", True),
        ]

    def test_empty_body(self):
        assert PythonScanner().parse_properties("") == []


class TestGoScanner:
    @pytest.fixture
    def analysis(self) -> CodeAnalysis:
        return GoScanner().scan(GO_SOURCE)

    def test_grouped_imports(self, analysis):
        assert analysis.imports[0] == "fmt"
        assert len(analysis.sdk_imports) == 2

    def test_single_import(self):
        analysis = GoScanner().scan('import "github.com/pulumi/pulumi/sdk/v3/go/pulumi"\n')
        assert analysis.sdk_imports == ["github.com/pulumi/pulumi/sdk/v3/go/pulumi"]

    def test_types_functions_exports(self, analysis):
        assert [(t.name, t.kind) for t in analysis.types] == [("BucketArgs", "struct"), ("bucketOutputs", "struct")]
        assert analysis.functions == ["NewBucket", "helper"]
        assert analysis.exports == ["BucketArgs", "NewBucket"]

    def test_struct_fields(self, analysis):
        props = GoScanner().parse_properties(analysis.first_type(("Args",)).body)
        assert props == [
            PropertyLine("Name", "string", False),
            PropertyLine("Versioned", "*bool", True),
            PropertyLine("Tags", "map[string]string", True),
        ]


class _FakeEntryPoint:
    def __init__(self, name, target=None, error=None):
        self.name = name
        self._target = target
        self._error = error

    def load(self):
        if self._error:
            raise self._error
        return self._target


class RustScanner(SourceScanner):
    language = "rust"

    def is_sdk_import(self, module: str) -> bool:
        return module.startswith("pulumi")

    def scan(self, code: str) -> CodeAnalysis:
        return CodeAnalysis(imports=["pulumi"], sdk_imports=["pulumi"])


class TestRegistry:
    @pytest.fixture
    def fake_plugins(self, monkeypatch):
        eps = [
            _FakeEntryPoint("Rust", RustScanner),
            _FakeEntryPoint("broken", error=ImportError("no module")),
            _FakeEntryPoint("notascanner", target=dict),
        ]
        monkeypatch.setattr(plugins, "entry_points", lambda group: eps)

    def test_builtins(self):
        assert isinstance(get_scanner("TypeScript"), TypeScriptScanner)
        assert isinstance(get_scanner("python"), PythonScanner)
        assert isinstance(get_scanner("go"), GoScanner)

    def test_unknown_language(self, monkeypatch):
        monkeypatch.setattr(plugins, "entry_points", lambda group: [])
        assert get_scanner("cobol") is None

    def test_plugin_discovery_skips_bad_entries(self, fake_plugins):
        assert plugins.discover_scanners() == {"rust": RustScanner}
        assert plugins.list_scanner_plugins() == ["rust"]

    def test_plugin_scanner_used(self, fake_plugins):
        scanner = get_scanner("rust")
        assert isinstance(scanner, RustScanner)
        assert scanner.scan("").sdk_imports == ["pulumi"]
