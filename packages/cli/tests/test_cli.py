"""CLI command tests using Typer's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from constructkit.spec import (
    ConstructComposition,
    ConstructDefinition,
    ConstructMetadata,
    CostModel,
    PropertySpec,
    SecurityConsideration,
    UsagePrice,
)
from constructkit_cli.main import app
from typer.testing import CliRunner

runner = CliRunner()

_API = ConstructDefinition(
    id="aws-l1-rest-api",
    level="L1",
    metadata=ConstructMetadata(name="REST API", description="HTTP API", category="api", tags=["aws", "public"]),
    providers=["aws"],
    inputs={"name": PropertySpec(type="string", required=True)},
    security=[SecurityConsideration(type="access-control", description="Open API", severity="high")],
    costs=[CostModel(provider="aws", base_cost=10.0, usage={"requests": UsagePrice(unit="request", cost=0.000001)})],
)

_DB = ConstructDefinition(
    id="aws-l1-database",
    level="L1",
    metadata=ConstructMetadata(name="Database", category="database", tags=["aws", "private"]),
    providers=["aws"],
    inputs={"api": PropertySpec(type="Ref<aws-l1-rest-api.url>")},
    costs=[CostModel(provider="aws", base_cost=20.0)],
)

_IDP = ConstructDefinition(
    id="gcp-l2-identity",
    level="L2",
    metadata=ConstructMetadata(name="Identity", category="security", tags=["gcp", "security"]),
    providers=["gcp"],
    costs=[CostModel(provider="gcp", base_cost=5.0)],
)

_TS_SOURCE = """\
import * as aws from "@pulumi/aws";

export interface SiteArgs {
    domain: string;
    index?: string;
}

const bucket = new aws.s3.Bucket("site", { serverSideEncryptionConfiguration: {} });
const role = new aws.iam.Role("r", {});
"""


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    root = tmp_path / "constructs"
    root.mkdir()
    for definition in (_API, _DB, _IDP):
        (root / f"{definition.id}.construct.yaml").write_text(definition.to_yaml())
    return root


@pytest.fixture
def request_file(tmp_path: Path) -> Path:
    p = tmp_path / "request.yaml"
    p.write_text(
        yaml.dump(
            {
                "name": "Shop",
                "instances": [
                    {
                        "construct_id": "aws-l1-rest-api",
                        "instance_name": "api",
                        "config": {"name": "shop"},
                        "connections": [{"target_instance": "db"}],
                    },
                    {"construct_id": "aws-l1-database", "instance_name": "db"},
                ],
            }
        )
    )
    return p


@pytest.fixture
def composition_file(tmp_path: Path, request_file: Path, catalog_dir: Path) -> Path:
    out = tmp_path / "shop.yaml"
    result = runner.invoke(app, ["compose", str(request_file), "--catalog", str(catalog_dir), "-o", str(out)])
    assert result.exit_code == 0, result.output
    return out


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch):
    """No stray project config or environment catalog leaks into a test."""
    monkeypatch.delenv("CONSTRUCTKIT_CATALOG", raising=False)
    monkeypatch.chdir(tmp_path)


def _json(result) -> dict:
    return json.loads(result.stdout)


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.stdout.startswith("constructkit ")

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "compose" in result.output


class TestAnalyze:
    def test_json_definition(self, tmp_path: Path):
        src = tmp_path / "site.ts"
        src.write_text(_TS_SOURCE)
        result = runner.invoke(app, ["--json", "analyze", str(src), "--name", "Static Site", "--provider", "aws"])
        assert result.exit_code == 0, result.output
        construct = _json(result)["construct"]
        assert construct["id"] == "aws-l1-static-site"
        assert list(construct["inputs"]) == ["domain", "index"]
        assert construct["implementation"]["packages"] == ["@pulumi/aws"]
        assert construct["security"] == []

    def test_writes_yaml(self, tmp_path: Path):
        src = tmp_path / "site.ts"
        src.write_text(_TS_SOURCE)
        out = tmp_path / "site.construct.yaml"
        result = runner.invoke(
            app, ["analyze", str(src), "--name", "Site", "--level", "l2", "--tag", "web", "-o", str(out)]
        )
        assert result.exit_code == 0, result.output
        definition = ConstructDefinition.from_file(out)
        assert definition.level == "L2"
        assert definition.metadata.tags == ["aws", "web"]

    def test_bad_level(self, tmp_path: Path):
        src = tmp_path / "site.ts"
        src.write_text(_TS_SOURCE)
        result = runner.invoke(app, ["--json", "analyze", str(src), "--name", "Site", "--level", "L9"])
        assert result.exit_code == 1
        assert _json(result)["error"].startswith("Invalid definition")


class TestCompose:
    def test_json_output(self, request_file, catalog_dir):
        result = runner.invoke(app, ["--json", "compose", str(request_file), "--catalog", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        data = _json(result)
        assert data["composition"]["name"] == "Shop"
        assert data["composition"]["id"].startswith("comp-shop-")
        assert data["validation"]["valid"] is True

    def test_writes_composition(self, composition_file):
        comp = ConstructComposition.from_file(composition_file)
        assert [i.instance_name for i in comp.instances] == ["api", "db"]

    def test_unknown_construct(self, tmp_path, catalog_dir):
        req = tmp_path / "bad.yaml"
        req.write_text(yaml.dump({"name": "Bad", "instances": [{"construct_id": "ghost", "instance_name": "g"}]}))
        result = runner.invoke(app, ["--json", "compose", str(req), "--catalog", str(catalog_dir)])
        assert result.exit_code == 1
        assert _json(result) == {"error": "Construct not found: ghost"}

    def test_invalid_composition_exits_1(self, tmp_path, catalog_dir):
        req = tmp_path / "cycle.yaml"
        req.write_text(
            yaml.dump(
                {
                    "name": "Cycle",
                    "instances": [
                        {"construct_id": "aws-l1-database", "instance_name": a, "connections": [{"target_instance": b}]}
                        for a, b in (("a", "b"), ("b", "a"))
                    ],
                }
            )
        )
        result = runner.invoke(app, ["--json", "compose", str(req), "--catalog", str(catalog_dir)])
        assert result.exit_code == 1
        errors = _json(result)["validation"]["errors"]
        assert {e["path"] for e in errors} == {"instances[0].connections[0]", "instances[1].connections[0]"}


class TestValidate:
    def test_valid(self, composition_file, catalog_dir):
        result = runner.invoke(app, ["validate", str(composition_file), "--catalog", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        assert "[VALID]" in result.stdout

    def test_missing_required_input(self, tmp_path, composition_file, catalog_dir):
        comp = ConstructComposition.from_file(composition_file)
        api = comp.instances[0].model_copy(update={"config": {}})
        broken = tmp_path / "broken.yaml"
        broken.write_text(comp.model_copy(update={"instances": [api, comp.instances[1]]}).to_yaml())

        result = runner.invoke(app, ["--json", "validate", str(broken), "--catalog", str(catalog_dir)])
        assert result.exit_code == 1
        [error] = _json(result)["validation"]["errors"]
        assert error["path"] == "instances[0].config.name"


class TestCost:
    def test_single_construct(self, catalog_dir):
        result = runner.invoke(
            app, ["--json", "cost", "--construct", "aws-l1-rest-api", "--catalog", str(catalog_dir)]
        )
        assert result.exit_code == 0, result.output
        estimate = _json(result)["estimate"]
        assert estimate["total"]["monthly"] == pytest.approx(10.0)
        assert estimate["provider"] == "aws"

    def test_composition_with_usage_and_region(self, composition_file, catalog_dir):
        result = runner.invoke(
            app,
            [
                "--json",
                "cost",
                str(composition_file),
                "--region",
                "eu-west-1",
                "--requests",
                "1000000",
                "--catalog",
                str(catalog_dir),
            ],
        )
        assert result.exit_code == 0, result.output
        estimate = _json(result)["estimate"]
        # (10 + 1) * 1.1 for the API, 20 * 1.1 for the DB, plus 10% overhead
        assert estimate["total"]["monthly"] == pytest.approx((12.1 + 22.0) * 1.1)
        assert estimate["region"] == "eu-west-1"

    def test_table_output(self, catalog_dir):
        result = runner.invoke(app, ["cost", "--construct", "aws-l1-rest-api", "--catalog", str(catalog_dir)])
        assert result.exit_code == 0
        assert "REST API Base Cost" in result.stdout

    def test_requires_target(self, catalog_dir):
        result = runner.invoke(app, ["--json", "cost", "--catalog", str(catalog_dir)])
        assert result.exit_code == 1
        assert "composition file or --construct" in _json(result)["error"]

    def test_provider_from_project_config(self, tmp_path, catalog_dir):
        proj = tmp_path / ".constructkit"
        proj.mkdir()
        (proj / "config.yaml").write_text(yaml.dump({"catalog": "constructs", "provider": "gcp"}))
        result = runner.invoke(app, ["--json", "cost", "--construct", "gcp-l2-identity"])
        assert result.exit_code == 0, result.output
        assert _json(result)["estimate"]["total"]["monthly"] == pytest.approx(5.0)


class TestDiagram:
    def test_mermaid_container(self, composition_file, catalog_dir):
        result = runner.invoke(app, ["diagram", str(composition_file), "--catalog", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("graph TB")
        assert "    api -->|sync| db" in result.stdout

    def test_plantuml_to_file(self, tmp_path, composition_file, catalog_dir):
        out = tmp_path / "context.puml"
        result = runner.invoke(
            app,
            [
                "diagram",
                str(composition_file),
                "-l",
                "context",
                "-f",
                "plantuml",
                "--catalog",
                str(catalog_dir),
                "-o",
                str(out),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "C4_Context.puml" in out.read_text()

    def test_json_diagram(self, composition_file, catalog_dir):
        result = runner.invoke(
            app, ["--json", "diagram", str(composition_file), "-f", "json", "--catalog", str(catalog_dir)]
        )
        assert result.exit_code == 0, result.output
        diagram = _json(result)["diagram"]
        assert diagram["level"] == "container"
        assert {n["id"] for n in diagram["content"]["nodes"]} == {"api", "db"}

    def test_unsupported_format(self, composition_file, catalog_dir):
        result = runner.invoke(
            app, ["--json", "diagram", str(composition_file), "-f", "svg", "--catalog", str(catalog_dir)]
        )
        assert result.exit_code == 1
        assert "Unknown diagram format" in _json(result)["error"]


class TestSecurity:
    def test_composition(self, composition_file, catalog_dir):
        result = runner.invoke(app, ["--json", "security", str(composition_file), "--catalog", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        recs = _json(result)["recommendations"]
        severities = [r["severity"] for r in recs]
        assert severities[0] == "high"
        assert {"Network Segmentation", "Data in Transit"} <= {r["type"] for r in recs}
        assert "construct_id" in recs[0]

    def test_single_construct_table(self, catalog_dir):
        result = runner.invoke(app, ["security", "--construct", "aws-l1-rest-api", "--catalog", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        assert "Security Recommendations" in result.stdout


class TestCatalog:
    def test_search_json(self, catalog_dir):
        result = runner.invoke(app, ["--json", "catalog", "search", "--provider", "aws", "--catalog", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        ids = [c["id"] for c in _json(result)["results"]]
        assert sorted(ids) == ["aws-l1-database", "aws-l1-rest-api"]

    def test_search_from_environment(self, catalog_dir, monkeypatch):
        monkeypatch.setenv("CONSTRUCTKIT_CATALOG", str(catalog_dir))
        result = runner.invoke(app, ["--json", "catalog", "search", "identity"])
        assert result.exit_code == 0, result.output
        assert [c["id"] for c in _json(result)["results"]] == ["gcp-l2-identity"]

    def test_search_table(self, catalog_dir):
        result = runner.invoke(app, ["catalog", "search", "--tag", "security", "--catalog", str(catalog_dir)])
        assert result.exit_code == 0
        assert "gcp-l2-identity" in result.stdout

    def test_show_with_dependencies(self, catalog_dir):
        result = runner.invoke(app, ["--json", "catalog", "show", "aws-l1-database", "--catalog", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        assert _json(result)["dependencies"] == ["aws-l1-rest-api"]

    def test_show_missing(self, catalog_dir):
        result = runner.invoke(app, ["--json", "catalog", "show", "nope", "--catalog", str(catalog_dir)])
        assert result.exit_code == 1
        assert _json(result) == {"error": "Construct not found: nope"}

    def test_no_catalog_configured(self):
        result = runner.invoke(app, ["--json", "catalog", "search"])
        assert result.exit_code == 1
        assert "No catalog directory specified" in _json(result)["error"]
