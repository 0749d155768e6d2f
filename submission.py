# submission.py
"""
Envío de las muestras grabadas al servidor.

Un único POST con cuerpo JSON por llamada, sin reintentos automáticos.
"""

import threading
from typing import Optional, Sequence

import requests

from config import HTTP_TIMEOUT
from errors import EmptyBufferError, ServerError, SubmissionBusyError, TransportError
from models import Sample, SessionFields, SubmissionPayload
from theme import console


class SubmissionClient:
    def __init__(self, session: Optional[requests.Session] = None, timeout: float = HTTP_TIMEOUT):
        self.http = session or requests.Session()
        self.timeout = timeout
        self._busy = False
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._busy

    def submit(self, samples: Sequence[Sample], fields: SessionFields) -> requests.Response:
        """
        Empaqueta las muestras con las etiquetas y las envía a fields.server_url.

        Lanza EmptyBufferError sin tocar la red si no hay muestras,
        ServerError ante un estado distinto de 2xx y TransportError
        ante un fallo de red.
        """
        if not samples:
            raise EmptyBufferError()
        fields.validate()

        with self._lock:
            if self._busy:
                raise SubmissionBusyError()
            self._busy = True

        payload = SubmissionPayload.build(samples, fields)
        try:
            console.print(
                f"Enviando [info]{len(payload.samples)}[/info] muestras a [info]{fields.server_url}[/info]..."
            )
            try:
                response = self.http.post(
                    fields.server_url,
                    data=payload.to_json(),
                    headers={"Content-Type": "application/json"},
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                raise TransportError(f"Error de red: {e}") from e

            if not 200 <= response.status_code < 300:
                raise ServerError(response.status_code, response.text)

            console.print(f"[success]Envío aceptado ({response.status_code}).[/success]")
            return response
        finally:
            with self._lock:
                self._busy = False
