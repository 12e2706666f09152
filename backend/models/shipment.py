from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from models.common import ServiceType


class ShipmentRequest(BaseModel):
    service_type:          ServiceType
    actual_weight:         float = Field(..., gt=0)         # kg
    length_cm:             Optional[float] = None
    width_cm:              Optional[float] = None
    height_cm:             Optional[float] = None
    distance:              float = Field(0.0, ge=0)         # km
    origin_postal:         Optional[str] = None
    destination_postal:    Optional[str] = None
    requested_surcharges:  List[str] = []                   # ex. ["fuel", "insurance"]

    @field_validator("origin_postal", "destination_postal")
    @classmethod
    def strip_postal(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.replace(" ", "").strip()

    @field_validator("requested_surcharges")
    @classmethod
    def normalize_surcharge_names(cls, names: List[str]) -> List[str]:
        return [n.strip().lower() for n in names if n and n.strip()]

    @property
    def dimensions_provided(self) -> bool:
        return all(d is not None and d > 0 for d in (self.length_cm, self.width_cm, self.height_cm))


class BasePriceRequest(ShipmentRequest):
    courier_id: str


class FinalPriceRequest(ShipmentRequest):
    courier_id:   str
    merchant_id:  str


class CompareRequest(ShipmentRequest):
    distance:            float = Field(..., ge=0)
    origin_postal:       str
    destination_postal:  str
    merchant_id:         Optional[str] = None
    courier_ids:         Optional[List[str]] = None   # prioritaire sur la sélection marchand
