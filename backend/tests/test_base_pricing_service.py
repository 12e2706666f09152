import pytest

from core.exceptions import PricingRuleNotFound
from models.common import ServiceType, SurchargeCondition, SurchargeKind
from models.pricing import SurchargeRule, ZoneRate
from models.shipment import ShipmentRequest
from services.base_pricing_service import calculate_base, lookup_zone

from conftest import make_rule


ZONES = [
    ZoneRate(origin_prefix="0", multiplier=1.1, zone_name="Oslo"),
    ZoneRate(origin_prefix="0", destination_prefix="5", multiplier=1.2, zone_name="Oslo-Bergen"),
    ZoneRate(destination_prefix="9", multiplier=1.5, zone_name="Nord"),
]


def _shipment(**overrides) -> ShipmentRequest:
    data = {
        "service_type": ServiceType.STANDARD,
        "actual_weight": 5,
        "origin_postal": "0150",
        "destination_postal": "5003",
    }
    data.update(overrides)
    return ShipmentRequest(**data)


class TestCalculateBase:
    def test_weight_only(self, shipment, rule_a):
        base = calculate_base("courier_a", ServiceType.STANDARD, shipment, rule_a)
        assert base.weight_cost == 50
        assert base.zone_multiplier == 1
        assert base.surcharges == []
        assert base.total_base_price == 70
        assert base.currency == "NOK"

    def test_small_dimensions_do_not_change_price(self, rule_a):
        shipment = _shipment(length_cm=40, width_cm=30, height_cm=20)
        base = calculate_base("courier_a", ServiceType.STANDARD, shipment, rule_a)
        assert base.weight_details.volumetric_weight == pytest.approx(4.8)
        assert base.weight_details.chargeable_weight == 5
        assert base.total_base_price == 70

    def test_distance_cost(self):
        rule = make_rule("courier_a", base_fee=20, per_kg_rate=10, per_km_rate=0.5)
        base = calculate_base("courier_a", ServiceType.STANDARD, _shipment(distance=100), rule)
        assert base.distance_cost == 50
        assert base.total_base_price == 120

    def test_zone_multiplier_applies_to_subtotal(self):
        rule = make_rule("courier_a", base_fee=20, per_kg_rate=10, zone_rates=ZONES)
        base = calculate_base("courier_a", ServiceType.STANDARD, _shipment(), rule)
        assert base.zone_multiplier == pytest.approx(1.2)
        assert base.zone_name == "Oslo-Bergen"
        assert base.subtotal == 84
        assert base.total_base_price == 84

    def test_breakdown_lists_each_step(self, shipment, rule_a):
        base = calculate_base("courier_a", ServiceType.STANDARD, shipment, rule_a)
        for key in ("weight", "weight_cost", "distance_cost", "zone", "subtotal", "total"):
            assert key in base.calculation_breakdown
        assert base.calculation_breakdown["total"].endswith("70.00 NOK")

    def test_missing_rule(self, shipment):
        with pytest.raises(PricingRuleNotFound) as exc:
            calculate_base("courier_a", ServiceType.STANDARD, shipment, None)
        assert exc.value.courier_id == "courier_a"
        assert exc.value.service_type == "standard"

    def test_inactive_rule(self, shipment):
        rule = make_rule("courier_a", base_fee=20, is_active=False)
        with pytest.raises(PricingRuleNotFound):
            calculate_base("courier_a", ServiceType.STANDARD, shipment, rule)

    def test_rule_for_another_service(self, shipment):
        rule = make_rule("courier_a", base_fee=20, service_type=ServiceType.EXPRESS)
        with pytest.raises(PricingRuleNotFound):
            calculate_base("courier_a", ServiceType.STANDARD, shipment, rule)


class TestZones:
    def test_most_specific_zone_wins(self):
        assert lookup_zone(ZONES, "0150", "5003").zone_name == "Oslo-Bergen"

    def test_origin_only_zone(self):
        assert lookup_zone(ZONES, "0150", "7010").zone_name == "Oslo"

    def test_wildcard_origin(self):
        assert lookup_zone(ZONES, "7010", "9008").zone_name == "Nord"

    def test_no_match(self):
        assert lookup_zone(ZONES, "7010", "5003") is None

    def test_first_declared_wins_ties(self):
        zones = [
            ZoneRate(origin_prefix="0", multiplier=1.1, zone_name="first"),
            ZoneRate(origin_prefix="0", multiplier=1.3, zone_name="second"),
        ]
        assert lookup_zone(zones, "0150", "5003").zone_name == "first"


class TestSurcharges:
    FUEL = SurchargeRule(name="fuel", kind=SurchargeKind.PERCENTAGE, amount=10)
    REMOTE = SurchargeRule(
        name="remote_area", amount=50,
        applies_when=SurchargeCondition.REMOTE_AREA, postal_prefixes=["9"],
    )
    INSURANCE = SurchargeRule(name="insurance", amount=25, applies_when=SurchargeCondition.REQUESTED)
    HEAVY = SurchargeRule(
        name="heavy", amount=40, applies_when=SurchargeCondition.WEIGHT_ABOVE, threshold=10,
    )
    LONG_HAUL = SurchargeRule(
        name="long_haul", kind=SurchargeKind.PERCENTAGE, amount=5,
        applies_when=SurchargeCondition.DISTANCE_ABOVE, threshold=500,
    )

    def _rule(self, *surcharges):
        return make_rule("courier_a", base_fee=20, per_kg_rate=10, surcharges=list(surcharges))

    def test_percentage_of_subtotal(self):
        base = calculate_base("courier_a", ServiceType.STANDARD, _shipment(), self._rule(self.FUEL))
        assert base.total_surcharges == 7
        assert base.total_base_price == 77
        assert base.surcharges[0].rate == 10
        assert "surcharge:fuel" in base.calculation_breakdown

    def test_remote_area(self):
        rule = self._rule(self.REMOTE)
        remote = calculate_base("courier_a", ServiceType.STANDARD, _shipment(destination_postal="9008"), rule)
        assert remote.is_remote_area is True
        assert remote.total_base_price == 120

        local = calculate_base("courier_a", ServiceType.STANDARD, _shipment(), rule)
        assert local.is_remote_area is False
        assert local.total_base_price == 70

    def test_requested_surcharge_only_when_asked(self):
        rule = self._rule(self.INSURANCE)
        plain = calculate_base("courier_a", ServiceType.STANDARD, _shipment(), rule)
        assert plain.surcharges == []

        insured = calculate_base(
            "courier_a", ServiceType.STANDARD, _shipment(requested_surcharges=[" Insurance "]), rule
        )
        assert [s.name for s in insured.surcharges] == ["insurance"]
        assert insured.total_base_price == 95

    def test_weight_threshold_uses_chargeable_weight(self):
        rule = self._rule(self.HEAVY)
        light = calculate_base("courier_a", ServiceType.STANDARD, _shipment(), rule)
        assert light.surcharges == []

        bulky = calculate_base(
            "courier_a", ServiceType.STANDARD,
            _shipment(length_cm=50, width_cm=40, height_cm=30), rule,
        )
        assert [s.name for s in bulky.surcharges] == ["heavy"]

    def test_distance_threshold(self):
        rule = self._rule(self.LONG_HAUL)
        base = calculate_base("courier_a", ServiceType.STANDARD, _shipment(distance=600), rule)
        assert base.total_surcharges == 3.5

    def test_surcharges_add_up(self):
        rule = self._rule(self.FUEL, self.REMOTE, self.INSURANCE)
        base = calculate_base(
            "courier_a", ServiceType.STANDARD,
            _shipment(destination_postal="9008", requested_surcharges=["insurance"]), rule,
        )
        assert base.total_surcharges == 82
        assert base.total_base_price == 152
