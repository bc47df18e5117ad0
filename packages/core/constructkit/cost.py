"""Cost calculator: static per-unit pricing for constructs and compositions.

Estimates only: no live billing lookups and no optimisation. Every estimate
carries its assumptions, which callers must surface alongside the totals.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from constructkit.spec import (
    ConstructComposition,
    ConstructDefinition,
    CostEstimate,
    CostLineItem,
    CostTotals,
    Usage,
)

log = logging.getLogger(__name__)

# provider -> region -> price multiplier; unknown regions price at 1.0
REGION_MULTIPLIERS: dict[str, dict[str, float]] = {
    "aws": {
        "us-east-1": 1.0,
        "us-west-2": 1.05,
        "eu-west-1": 1.1,
        "ap-southeast-1": 1.15,
        "ap-northeast-1": 1.2,
    },
    "azure": {
        "eastus": 1.0,
        "westus": 1.05,
        "westeurope": 1.1,
        "southeastasia": 1.15,
        "japaneast": 1.2,
    },
    "gcp": {
        "us-central1": 1.0,
        "us-west1": 1.05,
        "europe-west1": 1.1,
        "asia-southeast1": 1.15,
        "asia-northeast1": 1.2,
    },
}

# usage dimension -> breakdown label
_USAGE_LABELS = {
    "requests": "API Requests",
    "storage": "Storage",
    "compute": "Compute Hours",
}

MANAGEMENT_OVERHEAD_RATE = 0.10
EFFICIENCY_DISCOUNT_RATE = 0.05
EFFICIENCY_DISCOUNT_THRESHOLD = 3

NO_COST_MODEL = "No cost model available for this construct and provider combination"
NO_USAGE = "No usage specified - showing base costs only"
ESTIMATE_DISCLAIMER = "Prices are estimates and may vary based on actual usage"
DATA_TRANSFER_DISCLAIMER = "Does not include data transfer costs"
L3_DISCLAIMER = "L3 constructs may have additional application-specific costs"
DISCOUNT_NOTE = "5% efficiency discount applied for resource sharing"


class CostCalculator:
    def __init__(self, region_multipliers: Mapping[str, Mapping[str, float]] | None = None):
        self.region_multipliers = region_multipliers if region_multipliers is not None else REGION_MULTIPLIERS

    def estimate_construct(
        self,
        construct: ConstructDefinition,
        provider: str,
        region: str | None = None,
        usage: Usage | None = None,
    ) -> CostEstimate:
        """Price one construct: base cost plus usage lines, scaled by the region multiplier."""
        model = construct.cost_model(provider)
        if model is None:
            return CostEstimate(provider=provider, region=region, assumptions=[NO_COST_MODEL])

        breakdown: list[CostLineItem] = []
        monthly = 0.0

        if model.base_cost > 0:
            breakdown.append(
                CostLineItem(
                    item=f"{construct.metadata.name} Base Cost", cost=model.base_cost, unit="month", quantity=1
                )
            )
            monthly += model.base_cost

        if usage is not None:
            for dimension, label in _USAGE_LABELS.items():
                quantity = getattr(usage, dimension)
                price = model.usage.get(dimension)
                if not quantity or price is None:
                    continue
                line = CostLineItem(item=label, cost=price.cost, unit=price.unit, quantity=quantity)
                breakdown.append(line)
                monthly += line.subtotal

        monthly *= self.region_multiplier(provider, region)

        return CostEstimate(
            provider=provider,
            region=region,
            breakdown=breakdown,
            total=CostTotals.from_monthly(monthly),
            assumptions=_assumptions(construct, usage),
        )

    def estimate_composition(
        self,
        composition: ConstructComposition,
        provider: str,
        region: str | None = None,
        usage: Usage | None = None,
        catalog: Mapping[str, ConstructDefinition] | None = None,
    ) -> CostEstimate:
        """Sum per-instance estimates, then add management overhead and the multi-construct discount."""
        catalog = catalog or {}
        breakdown: list[CostLineItem] = []
        assumptions: list[str] = []
        monthly = 0.0

        for inst in composition.instances:
            definition = catalog.get(inst.construct_id)
            if definition is None:
                log.debug("Skipping %s: construct %s not in catalog", inst.instance_name, inst.construct_id)
                continue
            estimate = self.estimate_construct(definition, provider, region, usage)
            breakdown.extend(
                line.model_copy(update={"item": f"{inst.instance_name}: {line.item}"}) for line in estimate.breakdown
            )
            monthly += estimate.total.monthly
            assumptions.extend(estimate.assumptions)

        overhead = monthly * MANAGEMENT_OVERHEAD_RATE
        breakdown.append(CostLineItem(item="Composition Management Overhead", cost=overhead, unit="month", quantity=1))
        monthly += overhead

        if len(composition.instances) > EFFICIENCY_DISCOUNT_THRESHOLD:
            discount = monthly * EFFICIENCY_DISCOUNT_RATE
            breakdown.append(
                CostLineItem(item="Multi-construct Efficiency Discount", cost=-discount, unit="month", quantity=1)
            )
            monthly -= discount
            assumptions.append(DISCOUNT_NOTE)

        return CostEstimate(
            provider=provider,
            region=region,
            breakdown=breakdown,
            total=CostTotals.from_monthly(monthly),
            assumptions=list(dict.fromkeys(assumptions)),
        )

    def region_multiplier(self, provider: str, region: str | None) -> float:
        if not region:
            return 1.0
        return self.region_multipliers.get(provider, {}).get(region, 1.0)


def _assumptions(construct: ConstructDefinition, usage: Usage | None) -> list[str]:
    out: list[str] = []
    if usage is None or usage.is_empty():
        out.append(NO_USAGE)
    else:
        if usage.requests:
            out.append(f"Assuming {usage.requests:,.0f} requests per month")
        if usage.storage:
            out.append(f"Assuming {usage.storage:g} GB of storage")
        if usage.compute:
            out.append(f"Assuming {usage.compute:g} compute hours per month")
    out.append(ESTIMATE_DISCLAIMER)
    out.append(DATA_TRANSFER_DISCLAIMER)
    if construct.level == "L3":
        out.append(L3_DISCLAIMER)
    return out
