from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


# Umbral por defecto: 1 unidad nativa expresada en wei
DEFAULT_HIGH_RISK_THRESHOLD_WEI = 10**18

DEFAULT_KNOWN_PROTOCOLS = [
    "uniswap",
    "aave",
    "compound",
    "curve",
    "sushi",
    "balancer",
]


class Settings(BaseSettings):
    # Configuracion general
    APP_NAME: str = "stepup-guard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Clasificador de riesgo
    HIGH_RISK_THRESHOLD_WEI: int = Field(DEFAULT_HIGH_RISK_THRESHOLD_WEI, ge=0)

    # Protocolos conocidos separados por coma en el .env
    # Ejemplo en .env: KNOWN_PROTOCOLS=uniswap,aave,curve
    KNOWN_PROTOCOLS: Annotated[list[str], NoDecode] = DEFAULT_KNOWN_PROTOCOLS

    # TOTP (RFC 6238)
    TOTP_DIGITS: int = Field(6, ge=6, le=8)
    TOTP_INTERVAL_SECONDS: int = Field(30, gt=0)
    TOTP_VALID_WINDOW: int = Field(1, ge=0)
    TOTP_SECRET_BYTES: int = Field(20, ge=20)
    TOTP_ISSUER: str = "Venn2FA"

    # CORS: lista de orígenes permitidos separados por coma en el .env
    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:3000", "http://localhost:5173"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Permite definir ALLOWED_ORIGINS como string separado por comas en .env"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("KNOWN_PROTOCOLS", mode="before")
    @classmethod
    def parse_protocols(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        return [name.strip().lower() for name in v if name and name.strip()]

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    model_config = SettingsConfigDict(
        env_file          = ".env",
        env_file_encoding = "utf-8",
        case_sensitive    = True,
        extra             = "ignore",
    )


settings = Settings()
