"""
Router couriers : prix de base, prix final marchand, comparaison multi-transporteurs.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from core.dependencies import get_current_user, get_pricing_provider
from models.quote import BasePriceResponse, ComparisonResult, PriceQuote
from models.shipment import BasePriceRequest, CompareRequest, FinalPriceRequest
from services.comparison_service import calculate_final_price, compare_couriers, get_base_price
from services.pricing_provider import PricingConfigProvider

router = APIRouter()


# ── Public ────────────────────────────────────────────────────────────────────
@router.post("/base-price", response_model=BasePriceResponse, summary="Prix de base d'un transporteur (public)")
async def base_price(
    body: BasePriceRequest,
    provider: PricingConfigProvider = Depends(get_pricing_provider),
):
    return await get_base_price(provider, body, now=datetime.now(timezone.utc))


@router.post("/compare", response_model=ComparisonResult, summary="Comparer les transporteurs (public, checkout)")
async def compare(
    body: CompareRequest,
    provider: PricingConfigProvider = Depends(get_pricing_provider),
):
    return await compare_couriers(
        provider,
        body,
        merchant_id=body.merchant_id,
        courier_ids=body.courier_ids,
        now=datetime.now(timezone.utc),
    )


# ── Marchand authentifié ──────────────────────────────────────────────────────
@router.post("/calculate-price", response_model=PriceQuote, summary="Prix final avec marge marchand")
async def calculate_price(
    body: FinalPriceRequest,
    provider: PricingConfigProvider = Depends(get_pricing_provider),
    _user: dict = Depends(get_current_user),
):
    return await calculate_final_price(provider, body)
