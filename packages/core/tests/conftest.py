"""Shared fixtures for core tests."""

from __future__ import annotations

import pytest
from constructkit.catalog import ConstructCatalog
from constructkit.composer import ConstructComposer
from constructkit.spec import (
    ConstructComposition,
    ConstructDefinition,
    ConstructMetadata,
    CostModel,
    Implementation,
    PropertySpec,
    SecurityConsideration,
    UsagePrice,
)

FIXED_CLOCK = 1_700_000_000.0


@pytest.fixture
def api_construct() -> ConstructDefinition:
    """An L1 AWS REST API with base and usage pricing."""
    return ConstructDefinition(
        id="aws-l1-rest-api",
        level="L1",
        metadata=ConstructMetadata(
            name="REST API",
            description="API Gateway backed by Lambda",
            category="api",
            tags=["aws", "rest", "public"],
        ),
        providers=["aws"],
        inputs={
            "name": PropertySpec(type="string", required=True),
            "stage": PropertySpec(type="string", required=False, default="prod"),
        },
        outputs={"url": PropertySpec(type="string")},
        security=[
            SecurityConsideration(type="access-control", description="API is unauthenticated", severity="high"),
            SecurityConsideration(
                type="encryption", description="TLS termination", severity="medium", mitigation="ACM certificate"
            ),
        ],
        costs=[
            CostModel(
                provider="aws",
                base_cost=10.0,
                usage={
                    "requests": UsagePrice(unit="request", cost=0.0000035),
                    "compute": UsagePrice(unit="hour", cost=0.05),
                },
            )
        ],
        implementation=Implementation(runtime="nodejs"),
    )


@pytest.fixture
def db_construct() -> ConstructDefinition:
    """An L1 AWS database that references the API construct's output."""
    return ConstructDefinition(
        id="aws-l1-database",
        level="L1",
        metadata=ConstructMetadata(
            name="Database",
            description="Managed Postgres",
            category="database",
            tags=["aws", "private", "monitoring"],
        ),
        providers=["aws"],
        inputs={
            "engine": PropertySpec(type="string", required=True),
            "api_url": PropertySpec(type="Ref<aws-l1-rest-api.url>"),
        },
        dependencies=["aws-l0-vpc"],
        costs=[CostModel(provider="aws", base_cost=25.0, usage={"storage": UsagePrice(unit="GB", cost=0.1)})],
        implementation=Implementation(runtime="python"),
    )


@pytest.fixture
def auth_construct() -> ConstructDefinition:
    return ConstructDefinition(
        id="gcp-l2-identity",
        level="L2",
        metadata=ConstructMetadata(name="Identity", category="security", tags=["gcp", "security"]),
        providers=["gcp"],
        costs=[CostModel(provider="gcp", base_cost=5.0)],
    )


@pytest.fixture
def catalog(api_construct, db_construct, auth_construct) -> ConstructCatalog:
    return ConstructCatalog([api_construct, db_construct, auth_construct])


@pytest.fixture
def composer() -> ConstructComposer:
    return ConstructComposer(clock=lambda: FIXED_CLOCK)


@pytest.fixture
def composition(composer, catalog) -> ConstructComposition:
    """Two instances: api -> db over a sync connection."""
    return composer.compose(
        "Shop Backend",
        [
            {
                "construct_id": "aws-l1-rest-api",
                "instance_name": "api",
                "config": {"name": "shop"},
                "connections": [{"target_instance": "db", "type": "sync"}],
            },
            {"construct_id": "aws-l1-database", "instance_name": "db", "config": {"engine": "postgres"}},
        ],
        catalog,
    )
