"""
Helpers monétaires : tous les montants passent par Decimal avant arrondi.

Les floats des modèles sont convertis via str() pour éviter les artefacts
binaires (0.1 + 0.2) ; l'arrondi est toujours "half-up" (80.5 → 81).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, Decimal, str]

CENT = Decimal("0.01")


def to_decimal(value: Optional[Number]) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Number, places: int = 2) -> Decimal:
    """Arrondi half-up à `places` décimales."""
    exp = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exp, rounding=ROUND_HALF_UP)


def round_to_increment(value: Number, increment: Optional[Number] = None) -> Decimal:
    """
    Arrondit au multiple le plus proche de `increment` (half-up).
    Un incrément absent, nul ou négatif retombe sur 0.01.
    Idempotent : round_to_increment(round_to_increment(x, i), i) == round_to_increment(x, i).
    """
    inc = to_decimal(increment) if increment is not None else CENT
    if inc <= 0:
        inc = CENT

    steps = (to_decimal(value) / inc).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    result = steps * inc
    # Garde l'échelle de l'incrément (1.00 → 2 décimales) sans descendre sous le centime
    scale = max(-inc.as_tuple().exponent, 2)
    return result.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)
