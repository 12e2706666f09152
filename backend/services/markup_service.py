"""
Marge marchand : prix de base transporteur → prix affiché au client.

  percentage : marge = base × valeur / 100
  fixed      : marge = valeur
  puis borne [min_price, max_price] (la marge affichée suit la valeur bornée,
  elle peut devenir négative si le marchand subventionne), puis arrondi
  half-up à l'incrément du marchand (0.01 par défaut).
"""
import logging
from typing import Iterable, Optional, Tuple

from config import settings
from core.utils import round_money, round_to_increment, to_decimal
from models.common import MarginType, ServiceType
from models.pricing import MerchantMarkupPolicy
from models.quote import FinalPricing, MarkupBreakdown

logger = logging.getLogger(__name__)


# ── Résolution de la politique ────────────────────────────────────────────────

def _specificity(policy: MerchantMarkupPolicy) -> int:
    """transporteur+service (4) > transporteur (3) > service (2) > défaut marchand (1)."""
    if policy.courier_id and policy.service_type:
        return 4
    if policy.courier_id:
        return 3
    if policy.service_type:
        return 2
    return 1


def resolve_markup_policy(
    policies: Iterable[MerchantMarkupPolicy],
    courier_id: str,
    service_type: ServiceType,
) -> Optional[MerchantMarkupPolicy]:
    best: Optional[MerchantMarkupPolicy] = None
    for policy in policies:
        if not policy.is_active:
            continue
        if policy.courier_id and policy.courier_id != courier_id:
            continue
        if policy.service_type and policy.service_type != service_type:
            continue
        if best is None or _specificity(policy) > _specificity(best):
            best = policy
    return best


# ── Application ───────────────────────────────────────────────────────────────

def apply_markup(
    base_price: float,
    policy: Optional[MerchantMarkupPolicy],
    currency: str,
) -> Tuple[MarkupBreakdown, FinalPricing]:
    """Ne lève jamais : l'absence de politique est un état "sans marge" valide."""
    base = to_decimal(base_price)

    if policy is None or policy.margin_type == MarginType.NONE:
        return (
            MarkupBreakdown(),
            FinalPricing(
                before_markup=base_price,
                markup_amount=0.0,
                after_markup=base_price,
                rounded_price=base_price,
                currency=currency,
            ),
        )

    value = to_decimal(policy.margin_value)
    if policy.margin_type == MarginType.PERCENTAGE:
        margin = base * value / 100
    else:
        margin = value
    final = base + margin

    clamped_to = None
    if policy.min_price is not None and final < to_decimal(policy.min_price):
        final = to_decimal(policy.min_price)
        clamped_to = "min_price"
    if policy.max_price is not None and final > to_decimal(policy.max_price):
        final = to_decimal(policy.max_price)
        clamped_to = "max_price"
    if clamped_to:
        margin = final - base
        logger.debug("Prix %s borné à %s (%s)", base, final, clamped_to)

    increment = policy.rounding_increment
    if increment is None or increment <= 0:
        increment = settings.DEFAULT_ROUNDING_INCREMENT
    rounded = round_to_increment(final, increment)

    return (
        MarkupBreakdown(
            margin_type=policy.margin_type,
            margin_value=policy.margin_value,
            margin_amount=float(round_money(margin)),
            has_markup=True,
            rounding_increment=increment,
            clamped_to=clamped_to,
        ),
        FinalPricing(
            before_markup=base_price,
            markup_amount=float(round_money(margin)),
            after_markup=float(round_money(final)),
            rounded_price=float(rounded),
            currency=currency,
        ),
    )
