"""
exceptions.py
-------------
Excepciones personalizadas de stepup-guard.

Todas heredan de StepUpGuardException para poder capturarlas
en un solo handler global en main.py.

Las fallas de decisión (credenciales faltantes, código inválido,
secreto malformado) NO son excepciones en el camino de /detect:
el orquestador las convierte en un DetectionVerdict.
"""


class StepUpGuardException(Exception):
    """Base de todas las excepciones del servicio."""
    status_code: int = 500
    message: str = "Internal step-up guard error."

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.message
        super().__init__(self.message)


# ─────────────────────────────────────────────────────────────────────
# Errores de payload
# ─────────────────────────────────────────────────────────────────────

class InvalidTraceValueException(StepUpGuardException):
    """trace.value no es un entero decimal sin signo."""
    status_code = 422
    message = "trace.value must be an unsigned decimal integer."


# ─────────────────────────────────────────────────────────────────────
# Errores de TOTP / enrolamiento
# ─────────────────────────────────────────────────────────────────────

class MalformedSecretException(StepUpGuardException):
    """El secreto TOTP no se puede decodificar como base32."""
    status_code = 400
    message = "TOTP secret is not valid base32."


class InvalidEnrollmentLabelException(StepUpGuardException):
    """La cuenta o el issuer están vacíos."""
    status_code = 422
    message = "Account and issuer labels must be non-empty."
