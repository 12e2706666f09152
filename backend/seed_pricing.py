import asyncio
import os
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorClient

MONGO_URL = os.environ.get("MONGO_URL", "mongodb://localhost:27017")
DB_NAME = os.environ.get("DB_NAME", "CourierHub")

# Catalogue de démo (tarifs fictifs, NOK)
COURIERS = [
    {"courier_id": "bring",    "courier_name": "Bring",     "trust_score": 82.0},
    {"courier_id": "postnord", "courier_name": "PostNord",  "trust_score": 74.0},
    {"courier_id": "helthjem", "courier_name": "Helthjem",  "trust_score": 68.0},
]

FUEL = {"name": "fuel", "kind": "percentage", "amount": 8.0, "applies_when": "always"}
REMOTE = {
    "name": "remote_area", "kind": "fixed", "amount": 49.0,
    "applies_when": "remote_area", "postal_prefixes": ["90", "91", "92", "93", "94", "95", "96", "97", "98", "99"],
}
INSURANCE = {"name": "insurance", "kind": "fixed", "amount": 25.0, "applies_when": "requested"}

ZONES = [
    {"origin_prefix": "0", "destination_prefix": "0", "multiplier": 1.0,  "zone_name": "Oslo lokal"},
    {"origin_prefix": "0", "destination_prefix": "5", "multiplier": 1.15, "zone_name": "Østland → Vestland"},
    {"origin_prefix": "",  "destination_prefix": "9", "multiplier": 1.35, "zone_name": "Nord-Norge"},
]

RULES = [
    ("bring",    "standard", 59.0, 9.0,  0.40),
    ("bring",    "express",  99.0, 12.0, 0.55),
    ("postnord", "standard", 55.0, 10.0, 0.35),
    ("postnord", "economy",  45.0, 8.0,  0.30),
    ("helthjem", "standard", 49.0, 11.0, 0.45),
]

MERCHANT_ID = "demo-merchant"


async def seed_pricing():
    print(f"🔌 Connexion à MongoDB : {DB_NAME}")
    client = AsyncIOMotorClient(MONGO_URL)
    db = client[DB_NAME]

    now = datetime.now(timezone.utc)

    print("\n---------- TRANSPORTEURS ------------")
    for c in COURIERS:
        await db.couriers.update_one(
            {"courier_id": c["courier_id"]},
            {"$set": {**c, "is_active": True, "updated_at": now}},
            upsert=True,
        )
        print(f"✅ {c['courier_name']}")

    print("\n---------- RÈGLES TARIFAIRES ------------")
    for courier_id, service_type, base_fee, per_kg, per_km in RULES:
        await db.courier_pricing_rules.update_one(
            {"courier_id": courier_id, "service_type": service_type},
            {"$set": {
                "courier_id":         courier_id,
                "service_type":       service_type,
                "base_fee":           base_fee,
                "per_kg_rate":        per_kg,
                "per_km_rate":        per_km,
                "zone_rates":         ZONES,
                "surcharges":         [FUEL, REMOTE, INSURANCE],
                "volumetric_divisor": 5000.0,
                "currency":           "NOK",
                "is_active":          True,
                "updated_at":         now,
            }},
            upsert=True,
        )
        print(f"✅ {courier_id:<10} {service_type:<10} -> {base_fee} + {per_kg}/kg + {per_km}/km")

    print("\n---------- MARCHAND DE DÉMO ------------")
    await db.merchant_markup_policies.update_one(
        {"merchant_id": MERCHANT_ID, "courier_id": None, "service_type": None},
        {"$set": {
            "merchant_id":        MERCHANT_ID,
            "courier_id":         None,
            "service_type":       None,
            "margin_type":        "percentage",
            "margin_value":       15.0,
            "rounding_increment": 1.0,
            "min_price":          69.0,
            "max_price":          None,
            "is_active":          True,
        }},
        upsert=True,
    )
    for c in COURIERS[:2]:
        await db.merchant_courier_selections.update_one(
            {"merchant_id": MERCHANT_ID, "courier_id": c["courier_id"]},
            {"$set": {"is_selected": True}},
            upsert=True,
        )
    print(f"✅ {MERCHANT_ID} : +15 %, arrondi 1.00, min 69 NOK, 2 transporteurs sélectionnés")

    print("\n-------------------------------------------")
    print("🚀 TERMINÉ ! CATALOGUE TARIFAIRE CRÉÉ OU MIS À JOUR.")
    client.close()

if __name__ == "__main__":
    asyncio.run(seed_pricing())
