from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    APP_NAME: str = "courierhub-pricing"

    # MongoDB
    MONGO_URL: str = "mongodb://localhost:27017"
    DB_NAME: str = "CourierHub"

    # JWT
    JWT_SECRET: str = "changeme_minimum_32_chars_here_please"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # Rate limiting (slowapi, par IP)
    RATE_LIMIT_DEFAULT: str = "120/minute"

    # Tarification : valeurs par défaut si la règle transporteur ne les fixe pas
    DEFAULT_VOLUMETRIC_DIVISOR: float = 5000.0  # cm³ / kg
    DEFAULT_CURRENCY:           str   = "NOK"
    DEFAULT_ROUNDING_INCREMENT: float = 0.01
    QUOTE_VALIDITY_HOURS:       int   = 24
    COURIER_PRICING_TIMEOUT_SECONDS: float = 5.0

    # Recommandation : 40 % prix, 30 % TrustScore, 30 % classement = 100 %
    RECOMMEND_WEIGHT_PRICE:   float = 0.40
    RECOMMEND_WEIGHT_TRUST:   float = 0.30
    RECOMMEND_WEIGHT_RANKING: float = 0.30

    model_config = SettingsConfigDict(
        env_file=[".env", "../.env"],  # cherche dans backend/ puis dans la racine
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
