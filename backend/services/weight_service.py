"""
Poids taxable : max(poids réel, poids volumétrique).

  poids_volumétrique = (L × l × h) / diviseur   (seulement si les 3 dimensions > 0)
"""
from decimal import Decimal
from typing import Optional

from config import settings
from core.exceptions import InvalidWeight
from core.utils import round_money, to_decimal
from models.quote import WeightDetails

# Précision des poids exposés (kg)
WEIGHT_PLACES = 3


def volumetric_weight(
    length_cm: Optional[float],
    width_cm: Optional[float],
    height_cm: Optional[float],
    divisor: float,
) -> Decimal:
    dims = (length_cm, width_cm, height_cm)
    # Dimensions partielles : ignorées, jamais rejetées
    if any(d is None or d <= 0 for d in dims):
        return Decimal("0")
    div = to_decimal(divisor)
    if div <= 0:
        return Decimal("0")
    volume = to_decimal(length_cm) * to_decimal(width_cm) * to_decimal(height_cm)
    return volume / div


def normalize(
    actual_weight: float,
    length_cm: Optional[float] = None,
    width_cm: Optional[float] = None,
    height_cm: Optional[float] = None,
    divisor: float = settings.DEFAULT_VOLUMETRIC_DIVISOR,
) -> WeightDetails:
    if actual_weight is None or actual_weight <= 0:
        raise InvalidWeight("Le poids doit être supérieur à 0")

    actual = to_decimal(actual_weight)
    volumetric = round_money(
        volumetric_weight(length_cm, width_cm, height_cm, divisor), WEIGHT_PLACES
    )
    chargeable = max(actual, volumetric)

    return WeightDetails(
        actual_weight=float(actual),
        volumetric_weight=float(volumetric),
        chargeable_weight=float(chargeable),
        dimensions_provided=all(d is not None and d > 0 for d in (length_cm, width_cm, height_cm)),
    )
