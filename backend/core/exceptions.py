from typing import List, Optional

from fastapi import HTTPException, status


# ── HTTP (couche transport) ───────────────────────────────────────────────────

def credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Identifiants invalides ou token expiré",
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden_exception(detail: str = "Accès refusé") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


# ── Domaine tarification (indépendant du transport) ───────────────────────────

class PricingError(Exception):
    """Base des erreurs du moteur de prix. `code` est stable, `message` lisible."""

    code = "PRICING_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class InvalidInput(PricingError):
    code = "INVALID_INPUT"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidWeight(InvalidInput):
    code = "INVALID_WEIGHT"


class CourierNotFound(PricingError):
    code = "COURIER_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, courier_id: str):
        super().__init__(f"Transporteur {courier_id} introuvable")
        self.courier_id = courier_id


class PricingRuleNotFound(PricingError):
    """Aucune règle active pour (courier_id, service_type) ; exclusion locale en comparaison."""

    code = "PRICING_RULE_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, courier_id: str, service_type: str):
        super().__init__(
            f"Aucun tarif actif pour le transporteur {courier_id} ({service_type})"
        )
        self.courier_id = courier_id
        self.service_type = service_type


class ConfigurationUnavailable(PricingError):
    code = "CONFIGURATION_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class NoPricingAvailable(PricingError):
    code = "NO_PRICING_AVAILABLE"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, excluded: Optional[List[dict]] = None):
        super().__init__("Aucun tarif disponible pour les transporteurs demandés")
        self.excluded = excluded or []
