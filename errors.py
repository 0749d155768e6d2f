# errors.py
"""
Jerarquía de errores de la aplicación.

Todos heredan de WifiRecorderError para que la interfaz pueda
capturarlos en un único punto y mostrarlos al usuario.
"""

from typing import Iterable, Optional


class WifiRecorderError(Exception):
    """Error base de la aplicación."""


class ValidationError(WifiRecorderError):
    """Faltan campos obligatorios; la acción no se ha iniciado."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"Campos obligatorios vacíos: {', '.join(self.missing)}")


class PermissionDeniedError(WifiRecorderError):
    """Permiso de ubicación denegado o revocado."""


class ProbeError(WifiRecorderError):
    """Fallo transitorio al consultar la interfaz Wi-Fi."""


class EmptyBufferError(WifiRecorderError):
    """Se intentó enviar sin ninguna muestra grabada."""

    def __init__(self, message: str = "No hay muestras grabadas para enviar."):
        super().__init__(message)


class RecordingActiveError(WifiRecorderError):
    """Se intentó enviar mientras la grabación sigue activa."""

    def __init__(self, message: str = "Detén la grabación antes de enviar."):
        super().__init__(message)


class SubmissionError(WifiRecorderError):
    """Fallo al enviar las muestras; el buffer se conserva."""


class ServerError(SubmissionError):
    """El servidor respondió con un estado distinto de 2xx."""

    def __init__(self, status_code: int, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        detail = f": {body[:200]}" if body else ""
        super().__init__(f"El servidor respondió {status_code}{detail}")


class TransportError(SubmissionError):
    """Fallo de red antes de obtener respuesta."""


class SubmissionBusyError(SubmissionError):
    """Ya hay un envío en curso."""

    def __init__(self, message: str = "Ya hay un envío en curso."):
        super().__init__(message)
