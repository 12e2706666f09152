"""
Comparaison multi-transporteurs.

Pour chaque transporteur candidat (Pending → Priced | Excluded) :
  règle tarifaire → prix de base → marge marchand (optionnelle) → devis.
Les calculs partent en parallèle, chacun avec son propre timeout ; un échec
individuel exclut le transporteur sans interrompre la comparaison. Seule
l'absence totale de devis est remontée (NoPricingAvailable).

Tri : prix arrondi croissant, puis courier_id (ordre total, déterministe).
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

from config import settings
from core.exceptions import (
    ConfigurationUnavailable,
    CourierNotFound,
    InvalidInput,
    NoPricingAvailable,
    PricingRuleNotFound,
)
from core.utils import round_money, to_decimal
from models.common import ExclusionReason, QuoteStatus
from models.pricing import Courier
from models.quote import (
    BasePriceResponse,
    ComparisonResult,
    ExcludedCourier,
    PriceQuote,
    PriceRange,
    ShipmentDetails,
)
from models.shipment import BasePriceRequest, FinalPriceRequest, ShipmentRequest
from services.base_pricing_service import calculate_base
from services.markup_service import apply_markup
from services.pricing_provider import PricingConfigProvider

logger = logging.getLogger(__name__)


@dataclass
class CourierOutcome:
    courier_id: str
    status:     QuoteStatus = QuoteStatus.PENDING
    quote:      Optional[PriceQuote] = None
    reason:     Optional[ExclusionReason] = None
    detail:     Optional[str] = None

    def excluded(self) -> ExcludedCourier:
        return ExcludedCourier(courier_id=self.courier_id, reason=self.reason, detail=self.detail)


def _shipment_details(shipment: ShipmentRequest) -> ShipmentDetails:
    return ShipmentDetails(
        service_type=shipment.service_type,
        actual_weight=shipment.actual_weight,
        distance=shipment.distance,
        origin_postal=shipment.origin_postal,
        destination_postal=shipment.destination_postal,
        dimensions_provided=shipment.dimensions_provided,
    )


def _postal_area(postal: Optional[str]) -> str:
    return (postal or "")[:2]


# ── Devis pour un transporteur ────────────────────────────────────────────────

async def quote_courier(
    provider: PricingConfigProvider,
    courier: Courier,
    shipment: ShipmentRequest,
    merchant_id: Optional[str] = None,
) -> PriceQuote:
    """Prix de base + marge. Lève PricingRuleNotFound / ConfigurationUnavailable."""
    rule = await provider.get_pricing_rule(courier.courier_id, shipment.service_type)
    base = calculate_base(courier.courier_id, shipment.service_type, shipment, rule)

    policy = None
    if merchant_id:
        policy = await provider.get_markup_policy(merchant_id, courier.courier_id, shipment.service_type)
    markup, final = apply_markup(base.total_base_price, policy, base.currency)

    ranking_score = await provider.get_ranking_score(
        courier.courier_id, _postal_area(shipment.destination_postal)
    )

    return PriceQuote(
        courier_id=courier.courier_id,
        courier_name=courier.courier_name,
        logo_url=courier.logo_url,
        service_type=shipment.service_type,
        base_pricing=base,
        weight_details=base.weight_details,
        markup=markup,
        final_pricing=final,
        currency=base.currency,
        trust_score=courier.trust_score,
        ranking_score=ranking_score,
        calculation_breakdown={
            "base_calculation": base.calculation_breakdown,
            "merchant_markup":  markup.model_dump(mode="json"),
        },
    )


async def _price_candidate(
    provider: PricingConfigProvider,
    courier: Courier,
    shipment: ShipmentRequest,
    merchant_id: Optional[str],
    timeout: float,
) -> CourierOutcome:
    outcome = CourierOutcome(courier_id=courier.courier_id)
    try:
        outcome.quote = await asyncio.wait_for(
            quote_courier(provider, courier, shipment, merchant_id),
            timeout=timeout,
        )
        outcome.status = QuoteStatus.PRICED
        return outcome
    except PricingRuleNotFound as e:
        outcome.reason, outcome.detail = ExclusionReason.NO_PRICING_RULE, e.message
    except ConfigurationUnavailable as e:
        outcome.reason, outcome.detail = ExclusionReason.CONFIGURATION_UNAVAILABLE, e.message
    except asyncio.TimeoutError:
        outcome.reason, outcome.detail = ExclusionReason.TIMEOUT, f"> {timeout}s"
    except Exception as e:
        logger.exception("Erreur de calcul pour le transporteur %s", courier.courier_id)
        outcome.reason, outcome.detail = ExclusionReason.PRICING_ERROR, str(e)

    outcome.status = QuoteStatus.EXCLUDED
    logger.warning(
        "Transporteur %s exclu : %s (%s)", courier.courier_id, outcome.reason.value, outcome.detail
    )
    return outcome


# ── Candidats ─────────────────────────────────────────────────────────────────

async def _classify_missing(
    provider: PricingConfigProvider,
    courier_id: str,
    timeout: float,
) -> CourierOutcome:
    """Transporteur demandé mais absent du catalogue actif : inactif, inconnu ou illisible."""
    outcome = CourierOutcome(courier_id=courier_id, status=QuoteStatus.EXCLUDED)
    try:
        courier = await asyncio.wait_for(provider.get_courier(courier_id), timeout=timeout)
    except ConfigurationUnavailable as e:
        outcome.reason, outcome.detail = ExclusionReason.CONFIGURATION_UNAVAILABLE, e.message
    except asyncio.TimeoutError:
        outcome.reason, outcome.detail = ExclusionReason.TIMEOUT, f"> {timeout}s"
    else:
        outcome.reason = ExclusionReason.INACTIVE if courier else ExclusionReason.UNKNOWN_COURIER

    logger.warning(
        "Transporteur %s exclu : %s (%s)", courier_id, outcome.reason.value, outcome.detail
    )
    return outcome


async def resolve_candidates(
    provider: PricingConfigProvider,
    merchant_id: Optional[str] = None,
    courier_ids: Optional[List[str]] = None,
    timeout: Optional[float] = None,
) -> tuple[List[Courier], List[CourierOutcome]]:
    """
    Liste explicite > sélection du marchand > tous les transporteurs actifs.
    Retourne (candidats actifs, exclusions déjà connues : inconnus / inactifs).
    Les transporteurs hors catalogue actif sont vérifiés en parallèle, chacun
    avec son propre timeout ; une lecture en échec n'exclut que ce transporteur.
    """
    timeout = timeout or settings.COURIER_PRICING_TIMEOUT_SECONDS
    active = {c.courier_id: c for c in await provider.list_active_couriers()}

    wanted: List[str] = list(dict.fromkeys(courier_ids or []))
    if not wanted and merchant_id:
        wanted = list(dict.fromkeys(await provider.get_merchant_selection(merchant_id)))
        if wanted:
            logger.debug("Sélection marchand %s : %d transporteur(s)", merchant_id, len(wanted))

    if not wanted:
        return list(active.values()), []

    candidates = [active[courier_id] for courier_id in wanted if courier_id in active]
    excluded = await asyncio.gather(*[
        _classify_missing(provider, courier_id, timeout)
        for courier_id in wanted if courier_id not in active
    ])
    return candidates, list(excluded)


# ── Classement ────────────────────────────────────────────────────────────────

def rank_quotes(quotes: List[PriceQuote]) -> List[PriceQuote]:
    if not quotes:
        return []
    ordered = sorted(quotes, key=lambda q: (to_decimal(q.price), q.courier_id))
    cheapest = to_decimal(ordered[0].price)
    return [
        q.model_copy(update={
            "rank": i + 1,
            "is_cheapest": i == 0,
            "price_difference_from_cheapest": float(round_money(to_decimal(q.price) - cheapest)),
        })
        for i, q in enumerate(ordered)
    ]


def recommend(
    ranked: List[PriceQuote],
    weight_price: float = settings.RECOMMEND_WEIGHT_PRICE,
    weight_trust: float = settings.RECOMMEND_WEIGHT_TRUST,
    weight_ranking: float = settings.RECOMMEND_WEIGHT_RANKING,
) -> List[PriceQuote]:
    """
    Score global = prix (1 - prix/prix_max) + TrustScore (/100) + classement (/10),
    pondérés. Un seul devis recommandé ; à égalité, le mieux classé en prix.
    """
    if not ranked:
        return []
    max_price = max(to_decimal(q.price) for q in ranked)

    scored = []
    for q in ranked:
        price_score = 1 - to_decimal(q.price) / max_price if max_price > 0 else Decimal("0")
        trust_score = to_decimal(q.trust_score or 0) / 100
        ranking_score = to_decimal(q.ranking_score or 0) / 10
        overall = (
            price_score * to_decimal(weight_price)
            + trust_score * to_decimal(weight_trust)
            + ranking_score * to_decimal(weight_ranking)
        )
        scored.append(round_money(overall, 4))

    best = 0
    for i, score in enumerate(scored):
        if score > scored[best]:
            best = i

    return [
        q.model_copy(update={"overall_score": float(scored[i]), "recommended": i == best})
        for i, q in enumerate(ranked)
    ]


def price_range(ranked: List[PriceQuote]) -> PriceRange:
    low, high = to_decimal(ranked[0].price), to_decimal(ranked[-1].price)
    return PriceRange(
        min=float(low),
        max=float(high),
        difference=float(high - low),
        currency=ranked[0].currency,
    )


# ── Opérations ────────────────────────────────────────────────────────────────

async def compare_couriers(
    provider: PricingConfigProvider,
    shipment: ShipmentRequest,
    merchant_id: Optional[str] = None,
    courier_ids: Optional[List[str]] = None,
    now: Optional[datetime] = None,
    validity: Optional[timedelta] = None,
    timeout: Optional[float] = None,
) -> ComparisonResult:
    if not shipment.origin_postal or not shipment.destination_postal:
        raise InvalidInput("Codes postaux d'origine et de destination requis")

    now = now or datetime.now(timezone.utc)
    validity = validity or timedelta(hours=settings.QUOTE_VALIDITY_HOURS)
    timeout = timeout or settings.COURIER_PRICING_TIMEOUT_SECONDS

    candidates, outcomes = await resolve_candidates(provider, merchant_id, courier_ids, timeout)

    outcomes += await asyncio.gather(*[
        _price_candidate(provider, courier, shipment, merchant_id, timeout)
        for courier in candidates
    ])

    priced = [o.quote for o in outcomes if o.status == QuoteStatus.PRICED]
    excluded = [o.excluded() for o in outcomes if o.status == QuoteStatus.EXCLUDED]

    if not priced:
        logger.error("Aucun tarif disponible (%d transporteur(s) exclu(s))", len(excluded))
        raise NoPricingAvailable([e.model_dump(mode="json") for e in excluded])

    ranked = recommend(rank_quotes(priced))
    logger.info(
        "Comparaison %s : %d devis, %d exclu(s), %.2f–%.2f",
        shipment.service_type.value, len(ranked), len(excluded),
        ranked[0].price, ranked[-1].price,
    )

    return ComparisonResult(
        shipment_details=_shipment_details(shipment),
        total_couriers=len(ranked),
        quotes=ranked,
        cheapest=ranked[0],
        most_expensive=ranked[-1],
        price_range=price_range(ranked),
        excluded=excluded,
        calculated_at=now,
        valid_until=now + validity,
    )


async def get_base_price(
    provider: PricingConfigProvider,
    request: BasePriceRequest,
    now: Optional[datetime] = None,
) -> BasePriceResponse:
    now = now or datetime.now(timezone.utc)
    courier = await provider.get_courier(request.courier_id)
    if not courier:
        raise CourierNotFound(request.courier_id)

    rule = await provider.get_pricing_rule(request.courier_id, request.service_type)
    base = calculate_base(request.courier_id, request.service_type, request, rule)

    return BasePriceResponse(
        courier={
            "courier_id":   courier.courier_id,
            "courier_name": courier.courier_name,
            "logo_url":     courier.logo_url,
        },
        base_pricing=base,
        shipment_details=_shipment_details(request),
        valid_until=now + timedelta(hours=settings.QUOTE_VALIDITY_HOURS),
    )


async def calculate_final_price(
    provider: PricingConfigProvider,
    request: FinalPriceRequest,
) -> PriceQuote:
    courier = await provider.get_courier(request.courier_id)
    if not courier:
        raise CourierNotFound(request.courier_id)
    return await quote_courier(provider, courier, request, merchant_id=request.merchant_id)
