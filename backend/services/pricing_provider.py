"""
Fournisseur de configuration tarifaire (lecture seule).

Le moteur de prix ne connaît que le protocole `PricingConfigProvider` ;
`MongoPricingProvider` le réalise sur les collections MongoDB. Aucune mise en
cache ici : chaque comparaison relit la configuration, la fraîcheur est
communiquée aux appelants via `valid_until`.
"""
import logging
from typing import List, Optional, Protocol

from pymongo.errors import PyMongoError

from core.exceptions import ConfigurationUnavailable
from models.common import ServiceType
from models.pricing import Courier, CourierPricingRule, MerchantMarkupPolicy
from services.markup_service import resolve_markup_policy

logger = logging.getLogger(__name__)


class PricingConfigProvider(Protocol):
    async def get_courier(self, courier_id: str) -> Optional[Courier]: ...

    async def list_active_couriers(self) -> List[Courier]: ...

    async def get_merchant_selection(self, merchant_id: str) -> List[str]: ...

    async def get_pricing_rule(
        self, courier_id: str, service_type: ServiceType
    ) -> Optional[CourierPricingRule]: ...

    async def get_markup_policy(
        self, merchant_id: str, courier_id: str, service_type: ServiceType
    ) -> Optional[MerchantMarkupPolicy]: ...

    async def get_ranking_score(self, courier_id: str, postal_area: str) -> Optional[float]: ...


class MongoPricingProvider:
    def __init__(self, db):
        self.db = db

    async def get_courier(self, courier_id: str) -> Optional[Courier]:
        try:
            doc = await self.db.couriers.find_one({"courier_id": courier_id}, {"_id": 0})
        except PyMongoError as e:
            raise ConfigurationUnavailable(f"Lecture transporteur {courier_id} impossible : {e}")
        return Courier(**doc) if doc else None

    async def list_active_couriers(self) -> List[Courier]:
        try:
            cursor = self.db.couriers.find({"is_active": True}, {"_id": 0})
            docs = await cursor.to_list(length=500)
        except PyMongoError as e:
            raise ConfigurationUnavailable(f"Lecture catalogue transporteurs impossible : {e}")
        return [Courier(**d) for d in docs]

    async def get_merchant_selection(self, merchant_id: str) -> List[str]:
        try:
            cursor = self.db.merchant_courier_selections.find(
                {"merchant_id": merchant_id, "is_selected": True},
                {"_id": 0, "courier_id": 1},
            )
            docs = await cursor.to_list(length=500)
        except PyMongoError as e:
            raise ConfigurationUnavailable(f"Lecture sélection marchand {merchant_id} impossible : {e}")
        return [d["courier_id"] for d in docs]

    async def get_pricing_rule(
        self, courier_id: str, service_type: ServiceType
    ) -> Optional[CourierPricingRule]:
        try:
            doc = await self.db.courier_pricing_rules.find_one(
                {
                    "courier_id":   courier_id,
                    "service_type": ServiceType(service_type).value,
                    "is_active":    True,
                },
                {"_id": 0},
            )
        except PyMongoError as e:
            raise ConfigurationUnavailable(f"Lecture tarif {courier_id} impossible : {e}")
        return CourierPricingRule(**doc) if doc else None

    async def get_markup_policy(
        self, merchant_id: str, courier_id: str, service_type: ServiceType
    ) -> Optional[MerchantMarkupPolicy]:
        try:
            cursor = self.db.merchant_markup_policies.find(
                {
                    "merchant_id": merchant_id,
                    "is_active":   True,
                    "courier_id":   {"$in": [courier_id, None]},
                    "service_type": {"$in": [ServiceType(service_type).value, None]},
                },
                {"_id": 0},
            )
            docs = await cursor.to_list(length=50)
        except PyMongoError as e:
            raise ConfigurationUnavailable(f"Lecture marges marchand {merchant_id} impossible : {e}")
        policies = [MerchantMarkupPolicy(**d) for d in docs]
        return resolve_markup_policy(policies, courier_id, service_type)

    async def get_ranking_score(self, courier_id: str, postal_area: str) -> Optional[float]:
        try:
            doc = await self.db.courier_ranking_scores.find_one(
                {"courier_id": courier_id, "postal_area": postal_area},
                {"_id": 0, "final_ranking_score": 1},
            )
        except PyMongoError as e:
            # Le classement n'influence pas le prix : on s'en passe
            logger.debug("Classement indisponible pour %s : %s", courier_id, e)
            return None
        return doc.get("final_ranking_score") if doc else None
