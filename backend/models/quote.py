from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict
from models.common import ServiceType, MarginType, SurchargeKind, ExclusionReason


class WeightDetails(BaseModel):
    actual_weight:        float
    volumetric_weight:    float = 0.0
    chargeable_weight:    float
    dimensions_provided:  bool  = False


class AppliedSurcharge(BaseModel):
    name:    str
    kind:    SurchargeKind
    rate:    float          # montant configuré ou pourcentage
    amount:  float          # montant effectivement appliqué


class BasePricing(BaseModel):
    courier_id:         str
    service_type:       ServiceType
    base_price:         float          # frais fixes de la règle
    weight_cost:        float
    distance_cost:      float
    zone_multiplier:    float = 1.0
    zone_name:          Optional[str] = None
    is_remote_area:     bool  = False
    surcharges:         List[AppliedSurcharge] = []
    total_surcharges:   float = 0.0
    subtotal:           float
    total_base_price:   float
    currency:           str
    weight_details:     WeightDetails
    calculation_breakdown: Dict[str, str] = {}


class MarkupBreakdown(BaseModel):
    margin_type:         MarginType = MarginType.NONE
    margin_value:        float = 0.0
    margin_amount:       float = 0.0
    has_markup:          bool  = False
    rounding_increment:  Optional[float] = None
    clamped_to:          Optional[str] = None   # "min_price" | "max_price"


class FinalPricing(BaseModel):
    before_markup:  float
    markup_amount:  float
    after_markup:   float
    rounded_price:  float
    currency:       str


class PriceQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    courier_id:      str
    courier_name:    str
    logo_url:        Optional[str] = None
    service_type:    ServiceType
    base_pricing:    BasePricing
    weight_details:  WeightDetails
    markup:          MarkupBreakdown
    final_pricing:   FinalPricing
    currency:        str
    trust_score:     Optional[float] = None
    ranking_score:   Optional[float] = None
    calculation_breakdown: Dict[str, Any] = {}
    # Renseignés par la comparaison
    rank:                            Optional[int] = None
    is_cheapest:                     bool  = False
    price_difference_from_cheapest:  float = 0.0
    overall_score:                   Optional[float] = None
    recommended:                     bool  = False

    @property
    def price(self) -> float:
        return self.final_pricing.rounded_price


class PriceRange(BaseModel):
    min:         float
    max:         float
    difference:  float
    currency:    str


class ExcludedCourier(BaseModel):
    courier_id:  str
    reason:      ExclusionReason
    detail:      Optional[str] = None


class ShipmentDetails(BaseModel):
    service_type:         ServiceType
    actual_weight:        float
    distance:             float
    origin_postal:        Optional[str] = None
    destination_postal:   Optional[str] = None
    dimensions_provided:  bool = False


class ComparisonResult(BaseModel):
    shipment_details:  ShipmentDetails
    total_couriers:    int
    quotes:            List[PriceQuote]
    cheapest:          PriceQuote
    most_expensive:    PriceQuote
    price_range:       PriceRange
    excluded:          List[ExcludedCourier] = []
    calculated_at:     datetime
    valid_until:       datetime


class BasePriceResponse(BaseModel):
    courier:           Dict[str, Any]   # courier_id, courier_name, logo_url
    base_pricing:      BasePricing
    shipment_details:  ShipmentDetails
    valid_until:       datetime
