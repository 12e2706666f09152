"""
Fixtures partagées : fournisseur de configuration en mémoire et catalogue de test.
"""
import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from core.exceptions import ConfigurationUnavailable
from models.common import ServiceType
from models.pricing import Courier, CourierPricingRule, MerchantMarkupPolicy
from models.shipment import ShipmentRequest
from services.markup_service import resolve_markup_policy


class FakePricingProvider:
    """Réalise PricingConfigProvider sans MongoDB."""

    def __init__(
        self,
        couriers: Optional[List[Courier]] = None,
        rules: Optional[List[CourierPricingRule]] = None,
        policies: Optional[List[MerchantMarkupPolicy]] = None,
        selections: Optional[Dict[str, List[str]]] = None,
        ranking_scores: Optional[Dict[str, float]] = None,
        delays: Optional[Dict[str, float]] = None,
        failures: Optional[Dict[str, Exception]] = None,
        policy_failures: Optional[Dict[str, Exception]] = None,
        courier_failures: Optional[Dict[str, Exception]] = None,
    ):
        self.couriers = {c.courier_id: c for c in couriers or []}
        self.rules = rules or []
        self.policies = policies or []
        self.selections = selections or {}
        self.ranking_scores = ranking_scores or {}
        self.delays = delays or {}
        self.failures = failures or {}
        self.policy_failures = policy_failures or {}
        self.courier_failures = courier_failures or {}
        self.rule_lookups: List[str] = []

    async def get_courier(self, courier_id):
        if courier_id in self.courier_failures:
            raise self.courier_failures[courier_id]
        return self.couriers.get(courier_id)

    async def list_active_couriers(self):
        return [c for c in self.couriers.values() if c.is_active]

    async def get_merchant_selection(self, merchant_id):
        return list(self.selections.get(merchant_id, []))

    async def get_pricing_rule(self, courier_id, service_type):
        self.rule_lookups.append(courier_id)
        if courier_id in self.delays:
            await asyncio.sleep(self.delays[courier_id])
        if courier_id in self.failures:
            raise self.failures[courier_id]
        for rule in self.rules:
            if rule.courier_id == courier_id and rule.service_type == service_type and rule.is_active:
                return rule
        return None

    async def get_markup_policy(self, merchant_id, courier_id, service_type):
        if courier_id in self.policy_failures:
            raise self.policy_failures[courier_id]
        policies = [p for p in self.policies if p.merchant_id == merchant_id]
        return resolve_markup_policy(policies, courier_id, service_type)

    async def get_ranking_score(self, courier_id, postal_area):
        return self.ranking_scores.get(courier_id)


def make_courier(courier_id: str, trust_score: Optional[float] = None, is_active: bool = True) -> Courier:
    return Courier(
        courier_id=courier_id,
        courier_name=courier_id.capitalize(),
        trust_score=trust_score,
        is_active=is_active,
    )


def make_rule(courier_id: str, base_fee: float, per_kg_rate: float = 0.0, **kwargs) -> CourierPricingRule:
    kwargs.setdefault("service_type", ServiceType.STANDARD)
    return CourierPricingRule(courier_id=courier_id, base_fee=base_fee, per_kg_rate=per_kg_rate, **kwargs)


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def shipment():
    """5 kg, sans dimensions, Oslo → Bergen."""
    return ShipmentRequest(
        service_type=ServiceType.STANDARD,
        actual_weight=5,
        distance=0,
        origin_postal="0150",
        destination_postal="5003",
    )


@pytest.fixture
def rule_a():
    """Frais fixes 20, 10 / kg : 5 kg → 70."""
    return make_rule("courier_a", base_fee=20, per_kg_rate=10)


@pytest.fixture
def three_couriers_provider():
    """Prix finaux 120 / 95 / 110, sans marge."""
    return FakePricingProvider(
        couriers=[make_courier("alpha"), make_courier("bravo"), make_courier("charlie")],
        rules=[
            make_rule("alpha", base_fee=120),
            make_rule("bravo", base_fee=95),
            make_rule("charlie", base_fee=110),
        ],
    )


@pytest.fixture
def broken_config():
    return ConfigurationUnavailable("MongoDB injoignable")
