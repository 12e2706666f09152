from enum import Enum


class ServiceType(str, Enum):
    EXPRESS   = "express"
    STANDARD  = "standard"
    ECONOMY   = "economy"
    SAME_DAY  = "same_day"
    SCHEDULED = "scheduled"
    OVERNIGHT = "overnight"


class MarginType(str, Enum):
    NONE       = "none"
    PERCENTAGE = "percentage"
    FIXED      = "fixed"


class SurchargeKind(str, Enum):
    FIXED      = "fixed"        # montant fixe
    PERCENTAGE = "percentage"   # % du sous-total (après multiplicateur de zone)


class SurchargeCondition(str, Enum):
    ALWAYS         = "always"          # ex. surcharge carburant
    REMOTE_AREA    = "remote_area"     # code postal destination dans postal_prefixes
    REQUESTED      = "requested"       # seulement si demandée (ex. "insurance")
    WEIGHT_ABOVE   = "weight_above"    # poids taxable > threshold (kg)
    DISTANCE_ABOVE = "distance_above"  # distance > threshold (km)


class QuoteStatus(str, Enum):
    PENDING  = "pending"
    PRICED   = "priced"
    EXCLUDED = "excluded"


class ExclusionReason(str, Enum):
    NO_PRICING_RULE           = "no_pricing_rule"
    INACTIVE                  = "inactive"
    UNKNOWN_COURIER           = "unknown_courier"
    CONFIGURATION_UNAVAILABLE = "configuration_unavailable"
    TIMEOUT                   = "timeout"
    PRICING_ERROR             = "pricing_error"
