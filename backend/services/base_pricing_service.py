"""
Prix de base transporteur (avant marge marchand).

Formule :
  poids_taxable = max(poids_réel, L×l×h / diviseur_volumétrique)
  sous_total    = (frais_fixes + poids_taxable × tarif_kg + distance_km × tarif_km)
                × multiplicateur_zone
  surcharges    = Σ montants fixes + Σ (pourcentage × sous_total)
  prix_base     = sous_total + surcharges, arrondi à 2 décimales
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from core.exceptions import PricingRuleNotFound
from core.utils import round_money, to_decimal
from models.common import ServiceType, SurchargeCondition, SurchargeKind
from models.pricing import CourierPricingRule, SurchargeRule, ZoneRate
from models.quote import AppliedSurcharge, BasePricing, WeightDetails
from models.shipment import ShipmentRequest
from services.weight_service import normalize

logger = logging.getLogger(__name__)


def _fmt(value) -> str:
    return f"{round_money(value):.2f}"


# ── Zones ─────────────────────────────────────────────────────────────────────

def lookup_zone(
    zone_rates: Iterable[ZoneRate],
    origin_postal: Optional[str],
    destination_postal: Optional[str],
) -> Optional[ZoneRate]:
    """
    Zone la plus spécifique : préfixe origine le plus long, puis préfixe
    destination le plus long. À égalité, la première déclarée gagne.
    """
    origin = origin_postal or ""
    destination = destination_postal or ""

    best: Optional[ZoneRate] = None
    best_key: Optional[tuple[int, int]] = None
    for zone in zone_rates:
        if not origin.startswith(zone.origin_prefix):
            continue
        if not destination.startswith(zone.destination_prefix):
            continue
        key = (len(zone.origin_prefix), len(zone.destination_prefix))
        if best_key is None or key > best_key:
            best, best_key = zone, key
    return best


# ── Surcharges ────────────────────────────────────────────────────────────────

def surcharge_applies(
    surcharge: SurchargeRule,
    shipment: ShipmentRequest,
    chargeable_weight: Decimal,
) -> bool:
    cond = surcharge.applies_when
    if cond == SurchargeCondition.ALWAYS:
        return True
    if cond == SurchargeCondition.REMOTE_AREA:
        destination = shipment.destination_postal or ""
        return any(destination.startswith(p) for p in surcharge.postal_prefixes if p)
    if cond == SurchargeCondition.REQUESTED:
        return surcharge.name.lower() in shipment.requested_surcharges
    if cond == SurchargeCondition.WEIGHT_ABOVE:
        return surcharge.threshold is not None and chargeable_weight > to_decimal(surcharge.threshold)
    if cond == SurchargeCondition.DISTANCE_ABOVE:
        return surcharge.threshold is not None and to_decimal(shipment.distance) > to_decimal(surcharge.threshold)
    return False


def _surcharge_amount(surcharge: SurchargeRule, subtotal: Decimal) -> Decimal:
    if surcharge.kind == SurchargeKind.PERCENTAGE:
        return round_money(subtotal * to_decimal(surcharge.amount) / 100)
    return round_money(surcharge.amount)


# ── Point d'entrée principal ──────────────────────────────────────────────────

def calculate_base(
    courier_id: str,
    service_type: ServiceType,
    shipment: ShipmentRequest,
    rule: Optional[CourierPricingRule],
) -> BasePricing:
    """
    Lève PricingRuleNotFound si aucune règle active pour (courier_id, service_type).
    En comparaison, l'appelant exclut alors le transporteur sans échouer.
    """
    if (
        rule is None
        or not rule.is_active
        or rule.courier_id != courier_id
        or rule.service_type != service_type
    ):
        raise PricingRuleNotFound(courier_id, ServiceType(service_type).value)

    weights: WeightDetails = normalize(
        shipment.actual_weight,
        shipment.length_cm,
        shipment.width_cm,
        shipment.height_cm,
        divisor=rule.volumetric_divisor,
    )
    chargeable = to_decimal(weights.chargeable_weight)
    distance = to_decimal(shipment.distance)

    base_fee = to_decimal(rule.base_fee)
    weight_cost = chargeable * to_decimal(rule.per_kg_rate)
    distance_cost = distance * to_decimal(rule.per_km_rate)

    zone = lookup_zone(rule.zone_rates, shipment.origin_postal, shipment.destination_postal)
    multiplier = to_decimal(zone.multiplier) if zone else Decimal("1")

    subtotal = (base_fee + weight_cost + distance_cost) * multiplier

    breakdown = {
        "weight": (
            f"max({weights.actual_weight} kg réel, {weights.volumetric_weight} kg volumétrique)"
            f" = {weights.chargeable_weight} kg taxable"
        ),
        "weight_cost": f"{weights.chargeable_weight} kg × {_fmt(rule.per_kg_rate)} = {_fmt(weight_cost)}",
        "distance_cost": f"{shipment.distance} km × {_fmt(rule.per_km_rate)} = {_fmt(distance_cost)}",
        "zone": f"× {multiplier} ({zone.zone_name or 'zone'})" if zone else "× 1 (aucune zone)",
        "subtotal": (
            f"({_fmt(base_fee)} + {_fmt(weight_cost)} + {_fmt(distance_cost)}) × {multiplier}"
            f" = {_fmt(subtotal)}"
        ),
    }

    applied: list[AppliedSurcharge] = []
    total_surcharges = Decimal("0")
    is_remote_area = False
    for surcharge in rule.surcharges:
        if not surcharge_applies(surcharge, shipment, chargeable):
            continue
        amount = _surcharge_amount(surcharge, subtotal)
        total_surcharges += amount
        if surcharge.applies_when == SurchargeCondition.REMOTE_AREA:
            is_remote_area = True
        applied.append(AppliedSurcharge(
            name=surcharge.name,
            kind=surcharge.kind,
            rate=surcharge.amount,
            amount=float(amount),
        ))
        if surcharge.kind == SurchargeKind.PERCENTAGE:
            breakdown[f"surcharge:{surcharge.name}"] = f"{surcharge.amount}% × {_fmt(subtotal)} = {_fmt(amount)}"
        else:
            breakdown[f"surcharge:{surcharge.name}"] = f"fixe {_fmt(amount)}"

    total = round_money(subtotal + total_surcharges)
    breakdown["total"] = f"{_fmt(subtotal)} + {_fmt(total_surcharges)} = {_fmt(total)} {rule.currency}"

    logger.debug(
        "Prix de base %s/%s : %s %s (zone=%s, surcharges=%d)",
        courier_id, rule.service_type.value, total, rule.currency,
        zone.zone_name if zone else None, len(applied),
    )

    return BasePricing(
        courier_id=courier_id,
        service_type=rule.service_type,
        base_price=float(round_money(base_fee)),
        weight_cost=float(round_money(weight_cost)),
        distance_cost=float(round_money(distance_cost)),
        zone_multiplier=float(multiplier),
        zone_name=zone.zone_name if zone else None,
        is_remote_area=is_remote_area,
        surcharges=applied,
        total_surcharges=float(round_money(total_surcharges)),
        subtotal=float(round_money(subtotal)),
        total_base_price=float(total),
        currency=rule.currency,
        weight_details=weights,
        calculation_breakdown=breakdown,
    )
