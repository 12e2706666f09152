"""
MongoPricingProvider sur des collections motor simulées (AsyncMock).
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from core.exceptions import ConfigurationUnavailable
from models.common import MarginType, ServiceType
from services.pricing_provider import MongoPricingProvider


def _collection(find_one=None, docs=None, error=None) -> MagicMock:
    collection = MagicMock()
    cursor = MagicMock()
    if error:
        collection.find_one = AsyncMock(side_effect=error)
        cursor.to_list = AsyncMock(side_effect=error)
    else:
        collection.find_one = AsyncMock(return_value=find_one)
        cursor.to_list = AsyncMock(return_value=docs or [])
    collection.find = MagicMock(return_value=cursor)
    return collection


def _provider(**collections) -> MongoPricingProvider:
    names = (
        "couriers",
        "courier_pricing_rules",
        "merchant_markup_policies",
        "merchant_courier_selections",
        "courier_ranking_scores",
    )
    db = SimpleNamespace(**{name: collections.get(name, _collection()) for name in names})
    return MongoPricingProvider(db)


@pytest.fixture
def down():
    return _collection(error=ServerSelectionTimeoutError("No servers available"))


class TestReads:
    @pytest.mark.asyncio
    async def test_get_courier(self):
        provider = _provider(couriers=_collection(
            find_one={"courier_id": "bring", "courier_name": "Bring", "trust_score": 82},
        ))
        courier = await provider.get_courier("bring")
        assert courier.courier_name == "Bring"
        assert courier.trust_score == 82

    @pytest.mark.asyncio
    async def test_unknown_courier(self):
        assert await _provider().get_courier("ghost") is None

    @pytest.mark.asyncio
    async def test_pricing_rule_query(self):
        rules = _collection(find_one={
            "courier_id": "bring", "service_type": "standard", "base_fee": 59, "per_kg_rate": 9,
        })
        provider = _provider(courier_pricing_rules=rules)

        rule = await provider.get_pricing_rule("bring", ServiceType.STANDARD)

        assert rule.base_fee == 59
        query = rules.find_one.call_args.args[0]
        assert query == {"courier_id": "bring", "service_type": "standard", "is_active": True}

    @pytest.mark.asyncio
    async def test_merchant_selection(self):
        selections = _collection(docs=[{"courier_id": "bring"}, {"courier_id": "postnord"}])
        provider = _provider(merchant_courier_selections=selections)
        assert await provider.get_merchant_selection("m1") == ["bring", "postnord"]

    @pytest.mark.asyncio
    async def test_markup_policy_resolves_most_specific(self):
        policies = _collection(docs=[
            {"merchant_id": "m1", "margin_type": "percentage", "margin_value": 10},
            {"merchant_id": "m1", "courier_id": "bring", "margin_type": "fixed", "margin_value": 20},
        ])
        provider = _provider(merchant_markup_policies=policies)

        policy = await provider.get_markup_policy("m1", "bring", ServiceType.STANDARD)

        assert policy.margin_type == MarginType.FIXED
        assert policy.margin_value == 20
        query = policies.find.call_args.args[0]
        assert query["courier_id"] == {"$in": ["bring", None]}
        assert query["service_type"] == {"$in": ["standard", None]}

    @pytest.mark.asyncio
    async def test_ranking_score(self):
        scores = _collection(find_one={"final_ranking_score": 7.5})
        provider = _provider(courier_ranking_scores=scores)
        assert await provider.get_ranking_score("bring", "50") == 7.5


class TestMongoFailures:
    @pytest.mark.asyncio
    async def test_get_courier(self, down):
        with pytest.raises(ConfigurationUnavailable):
            await _provider(couriers=down).get_courier("bring")

    @pytest.mark.asyncio
    async def test_list_active_couriers(self, down):
        with pytest.raises(ConfigurationUnavailable) as exc:
            await _provider(couriers=down).list_active_couriers()
        assert exc.value.status_code == 503

    @pytest.mark.asyncio
    async def test_merchant_selection(self, down):
        with pytest.raises(ConfigurationUnavailable):
            await _provider(merchant_courier_selections=down).get_merchant_selection("m1")

    @pytest.mark.asyncio
    async def test_pricing_rule(self, down):
        with pytest.raises(ConfigurationUnavailable):
            await _provider(courier_pricing_rules=down).get_pricing_rule("bring", ServiceType.STANDARD)

    @pytest.mark.asyncio
    async def test_markup_policy(self):
        provider = _provider(merchant_markup_policies=_collection(error=PyMongoError("boom")))
        with pytest.raises(ConfigurationUnavailable):
            await provider.get_markup_policy("m1", "bring", ServiceType.STANDARD)

    @pytest.mark.asyncio
    async def test_ranking_score_degrades_to_none(self, down):
        assert await _provider(courier_ranking_scores=down).get_ranking_score("bring", "50") is None
