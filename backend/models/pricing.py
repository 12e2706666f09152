from typing import Optional, List
from pydantic import BaseModel, Field
from config import settings
from models.common import ServiceType, MarginType, SurchargeKind, SurchargeCondition


class Courier(BaseModel):
    courier_id:    str
    courier_name:  str
    logo_url:      Optional[str] = None
    is_active:     bool  = True
    trust_score:   Optional[float] = None   # 0-100


class ZoneRate(BaseModel):
    """Multiplicateur par couple de préfixes postaux. Préfixe vide = joker."""
    origin_prefix:       str   = ""
    destination_prefix:  str   = ""
    multiplier:          float = Field(1.0, gt=0)
    zone_name:           Optional[str] = None


class SurchargeRule(BaseModel):
    name:             str                   # "fuel", "remote_area", "insurance"
    kind:             SurchargeKind = SurchargeKind.FIXED
    amount:           float = Field(0.0, ge=0)   # montant ou pourcentage selon kind
    applies_when:     SurchargeCondition = SurchargeCondition.ALWAYS
    postal_prefixes:  List[str] = []        # REMOTE_AREA
    threshold:        Optional[float] = None  # WEIGHT_ABOVE / DISTANCE_ABOVE


class CourierPricingRule(BaseModel):
    courier_id:          str
    service_type:        ServiceType
    base_fee:            float = Field(0.0, ge=0)
    per_kg_rate:         float = Field(0.0, ge=0)
    per_km_rate:         float = Field(0.0, ge=0)
    zone_rates:          List[ZoneRate] = []
    surcharges:          List[SurchargeRule] = []
    volumetric_divisor:  float = Field(settings.DEFAULT_VOLUMETRIC_DIVISOR, gt=0)   # cm³ / kg
    currency:            str   = settings.DEFAULT_CURRENCY
    is_active:           bool  = True


class MerchantMarkupPolicy(BaseModel):
    merchant_id:         str
    courier_id:          Optional[str] = None          # None = tous les transporteurs
    service_type:        Optional[ServiceType] = None  # None = tous les services
    margin_type:         MarginType = MarginType.NONE
    margin_value:        float = Field(0.0, ge=0)
    rounding_increment:  Optional[float] = None        # ex. 1.00
    min_price:           Optional[float] = None
    max_price:           Optional[float] = None
    is_active:           bool  = True
