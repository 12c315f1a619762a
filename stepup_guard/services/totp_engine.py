"""
totp_engine.py
--------------
Generación y validación de códigos TOTP (RFC 6238) sobre pyotp.

Operaciones:
  1. generate_secret()       → secreto aleatorio de 160 bits en base32
  2. generate_code_at()      → código de 6 dígitos para un instante dado
  3. verify()                → valida un código con tolerancia de ±1 paso
  4. build_enrollment_uri()  → URI otpauth:// para apps autenticadoras

pyotp hace el HMAC, el truncamiento y el URI. Este módulo agrega lo que
pyotp no cubre:
  - El instante siempre es explícito; datetime naive se lee como UTC
    (pyotp lo leería como hora local)
  - El código se valida (solo dígitos ASCII, largo exacto) antes de
    comparar
  - El secreto se normaliza: sin espacios, mayúsculas, sin padding
  - verify() NUNCA lanza: secreto, código o instante inválidos → False
"""

import binascii
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

import pyotp

from stepup_guard.core.config import settings
from stepup_guard.core.exceptions import (
    InvalidEnrollmentLabelException,
    MalformedSecretException,
)

logger = logging.getLogger(__name__)

# ── Configuración ─────────────────────────────────────────────────────
TOTP_DIGITS           = 6
TOTP_INTERVAL_SECONDS = 30
TOTP_VALID_WINDOW     = 1     # pasos aceptados antes y después del actual
TOTP_SECRET_BYTES     = 20    # 160 bits, recomendado por RFC 4226
_MIN_SECRET_BYTES     = 20    # pyotp.random_base32 exige >= 32 chars

TimeInput = Union[datetime, int, float]


@dataclass(frozen=True)
class TotpConfig:
    digits:           int = TOTP_DIGITS
    interval_seconds: int = TOTP_INTERVAL_SECONDS
    valid_window:     int = TOTP_VALID_WINDOW
    secret_bytes:     int = TOTP_SECRET_BYTES

    def __post_init__(self):
        if not 6 <= self.digits <= 8:
            raise ValueError(f"digits must be between 6 and 8, got {self.digits}")
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if self.valid_window < 0:
            raise ValueError("valid_window must be >= 0")
        if self.secret_bytes < _MIN_SECRET_BYTES:
            raise ValueError(f"secret_bytes must be >= {_MIN_SECRET_BYTES}")

    @property
    def secret_length(self) -> int:
        """Caracteres base32 que codifican secret_bytes (sin padding)."""
        return -(-self.secret_bytes * 8 // 5)

    @classmethod
    def from_settings(cls, settings) -> "TotpConfig":
        return cls(
            digits           = settings.TOTP_DIGITS,
            interval_seconds = settings.TOTP_INTERVAL_SECONDS,
            valid_window     = settings.TOTP_VALID_WINDOW,
            secret_bytes     = settings.TOTP_SECRET_BYTES,
        )


class TotpEngine:
    """
    Motor TOTP sin estado. Cada llamada depende solo de sus argumentos
    y de la configuración inmutable, así que una sola instancia se
    comparte entre requests concurrentes sin locks.
    """

    def __init__(self, config: TotpConfig | None = None):
        self.config = config or TotpConfig()

    # ------------------------------------------------------------------ #
    #  Enrolamiento                                                      #
    # ------------------------------------------------------------------ #

    def generate_secret(self) -> str:
        """Secreto aleatorio en base32 sin padding (32 chars con 20 bytes)."""
        return pyotp.random_base32(length=self.config.secret_length)

    def build_enrollment_uri(
        self,
        secret:        str,
        account_label: str,
        issuer_label:  str,
    ) -> str:
        """
        otpauth://totp/<issuer>:<account>?secret=<secret>&issuer=<issuer>

        Solo formatea. Los labels van percent-encoded, así que un ':'
        dentro del account (p.ej. CAIP-10 "eip155:1:0x...") queda como
        %3A y no se confunde con el separador. digits y period se agregan
        solo si difieren de 6 y 30.
        """
        for label in (account_label, issuer_label):
            if not isinstance(label, str) or not label.strip():
                raise InvalidEnrollmentLabelException()

        return self._totp(secret).provisioning_uri(
            name        = account_label,
            issuer_name = issuer_label,
        )

    # ------------------------------------------------------------------ #
    #  Generación y validación                                           #
    # ------------------------------------------------------------------ #

    def generate_code_at(self, secret: str, for_time: TimeInput) -> str:
        """
        Código válido en el paso de tiempo que contiene for_time.
        Lanza MalformedSecretException si el secreto no es base32.
        """
        self.decode_secret(secret)
        return self._totp(self.normalize_secret(secret)).at(self.instant(for_time))

    def verify(self, secret: str, code: str, now: TimeInput) -> bool:
        """
        True si code coincide con el paso actual o con alguno de los
        ±valid_window pasos adyacentes.

        Nunca lanza: secreto malformado, código no numérico o de largo
        incorrecto → False.
        """
        if not isinstance(code, str):
            return False
        candidate = code.strip()
        # pyotp normaliza NFKC antes de comparar: los dígitos full-width
        # se rechazan acá
        if len(candidate) != self.config.digits or not (candidate.isascii() and candidate.isdigit()):
            return False

        try:
            self.decode_secret(secret)
            totp   = self._totp(self.normalize_secret(secret))
            moment = self.instant(now)
            return totp.verify(
                candidate,
                for_time     = moment,
                valid_window = self.config.valid_window,
            )
        except MalformedSecretException as e:
            logger.warning(f"[TOTP] Secreto malformado: {e.message}")
            return False
        except (TypeError, ValueError, OverflowError, OSError) as e:
            logger.warning(f"[TOTP] Instante inválido para verificar: {e}")
            return False

    # ------------------------------------------------------------------ #
    #  Utilidades                                                        #
    # ------------------------------------------------------------------ #

    @staticmethod
    def instant(for_time: TimeInput) -> datetime:
        """datetime UTC con zona para for_time (datetime o unix seconds)."""
        if isinstance(for_time, datetime):
            moment = for_time if for_time.tzinfo else for_time.replace(tzinfo=timezone.utc)
        elif isinstance(for_time, bool) or not isinstance(for_time, (int, float)):
            raise TypeError(f"unsupported time value: {for_time!r}")
        elif not math.isfinite(for_time):
            raise ValueError(f"time value is not finite: {for_time!r}")
        else:
            moment = datetime.fromtimestamp(for_time, tz=timezone.utc)
        if moment.timestamp() < 0:
            raise ValueError(f"time value before the unix epoch: {for_time!r}")
        return moment

    @staticmethod
    def normalize_secret(secret: str) -> str:
        """Sin espacios, en mayúsculas y sin padding '='."""
        return "".join(secret.split()).upper().rstrip("=")

    @classmethod
    def decode_secret(cls, secret: str) -> bytes:
        """
        Decodifica base32 tolerando minúsculas, espacios y padding
        faltante, como lo muestran las apps autenticadoras.
        """
        if not isinstance(secret, str):
            raise MalformedSecretException("TOTP secret must be a string.")

        normalized = cls.normalize_secret(secret)
        if not normalized:
            raise MalformedSecretException("TOTP secret is empty.")

        try:
            key = pyotp.TOTP(normalized).byte_secret()
        except (binascii.Error, ValueError):
            raise MalformedSecretException()
        if not key:
            raise MalformedSecretException("TOTP secret is empty.")
        return key

    def _totp(self, secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(
            secret,
            digits   = self.config.digits,
            interval = self.config.interval_seconds,
        )


# Singleton configurado desde settings
totp_engine = TotpEngine(TotpConfig.from_settings(settings))
