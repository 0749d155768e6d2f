# -*- coding: utf-8 -*-
"""
Módulo de grabación de muestras.

Contiene el temporizador periódico 'RecurringTask' y la sesión de grabación
'RecordingSession', que cada segundo escanea las redes visibles y acumula
una muestra con el nivel de cada punto de acceso.
"""

import functools
import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

import pandas as pd

from config import CLOCK_INTERVAL, SAMPLE_INTERVAL
from errors import (
    PermissionDeniedError, ProbeError, RecordingActiveError, SubmissionBusyError,
)
from models import RecordingBuffer, Sample, SessionFields, SessionState
from submission import SubmissionClient
from theme import console
from wifi_probe import PermissionGate, PermissionTracker, WifiProbe

AlertCallback = Callable[[str, str], None]


class RecurringTask(threading.Thread):
    """
    Ejecuta 'callback' cada 'interval' segundos en un hilo propio.
    La cancelación es síncrona e idempotente.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], None],
        immediate: bool = False
    ):
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self.callback = callback
        self.immediate = immediate
        self._stop_event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        if self.immediate and not self.cancelled:
            self._fire()
        next_run = time.monotonic() + self.interval
        while not self._stop_event.wait(max(0.0, next_run - time.monotonic())):
            self._fire()
            next_run += self.interval
            # Si un tick se ha retrasado más de un intervalo, no acumulamos disparos
            now = time.monotonic()
            if next_run < now:
                next_run = now + self.interval

    def _fire(self) -> None:
        try:
            self.callback()
        except Exception as e:
            console.print(f"[error]{self.name}: error en el tick: {e}[/error]")

    def cancel(self) -> None:
        """Detiene el temporizador y espera al tick en curso (salvo desde el propio hilo)."""
        self._stop_event.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout=self.interval * 2)


class RecordingSession:
    """
    Orquesta la grabación: Idle -> Recording -> Idle.

    Dos temporizadores independientes a 1 Hz: uno toma las muestras y otro
    cuenta el tiempo transcurrido. El buffer solo se modifica mientras la
    sesión está en Recording.
    """

    def __init__(
        self,
        probe: WifiProbe,
        gate: PermissionGate,
        sample_interval: float = SAMPLE_INTERVAL,
        clock_interval: float = CLOCK_INTERVAL,
        on_sample: Optional[Callable[[Sample, int], None]] = None,
        on_alert: Optional[AlertCallback] = None
    ):
        self.probe = probe
        self.permission = PermissionTracker(gate)
        self.sample_interval = sample_interval
        self.clock_interval = clock_interval
        self.on_sample = on_sample
        self.on_alert = on_alert

        self.state = SessionState.IDLE
        self.buffer = RecordingBuffer()
        self.fields: Optional[SessionFields] = None
        self.sample_count = 0
        self.elapsed_seconds = 0
        self.last_network_count = 0

        self._lock = threading.Lock()
        self._tasks: List[RecurringTask] = []
        # Cada start() abre una generación nueva; los ticks de una anterior se descartan
        self._generation = 0
        self._submitting = False

    @property
    def is_recording(self) -> bool:
        return self.state is SessionState.RECORDING

    def _is_current(self, generation: int) -> bool:
        # Requiere self._lock
        return self.state is SessionState.RECORDING and generation == self._generation

    def start(self, fields: SessionFields) -> None:
        """
        Valida los campos, asegura el permiso y arranca la grabación.

        Lanza ValidationError, PermissionDeniedError o SubmissionBusyError
        sin iniciar nada.
        """
        fields.validate()
        if not self.permission.ensure():
            raise PermissionDeniedError("Se necesita el permiso de ubicación para escanear redes Wi-Fi.")

        with self._lock:
            if self._submitting:
                raise SubmissionBusyError("Hay un envío en curso; espera a que termine para grabar.")
            if self.state is SessionState.RECORDING:
                return
            self._generation += 1
            generation = self._generation
            self.fields = fields
            self.buffer.clear()
            self.sample_count = 0
            self.elapsed_seconds = 0
            self.last_network_count = 0
            self.state = SessionState.RECORDING
            self._tasks = [
                RecurringTask("sampler", self.sample_interval, functools.partial(self.sample_tick, generation)),
                RecurringTask("clock", self.clock_interval, functools.partial(self.clock_tick, generation)),
            ]
            tasks = list(self._tasks)
        for task in tasks:
            task.start()
        console.print(f"[success]Grabación iniciada[/success] en [info]{fields.place} / {fields.location}[/info]")

    def stop(self) -> None:
        """Detiene ambos temporizadores; buffer y contadores se conservan."""
        self._halt(None)

    def _halt(self, generation: Optional[int]) -> bool:
        with self._lock:
            if self.state is SessionState.IDLE:
                return False
            if generation is not None and generation != self._generation:
                return False
            self.state = SessionState.IDLE
            tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        console.print(f"[warn]Grabación detenida:[/warn] {self.sample_count} muestras, {self.elapsed_seconds} s")
        return True

    def sample_tick(self, generation: Optional[int] = None) -> None:
        """
        Escanea las redes visibles y añade una muestra al buffer.

        Sin 'generation' el tick pertenece a la grabación activa.
        """
        with self._lock:
            if generation is None:
                generation = self._generation
            if not self._is_current(generation):
                return
        timestamp = datetime.now(timezone.utc)
        try:
            entries = self.probe.scan_networks()
        except PermissionDeniedError as e:
            if not self._halt(generation):
                return
            self.permission.deny()
            console.print(f"[error]Permiso revocado durante la grabación: {e}[/error]")
            if self.on_alert:
                self.on_alert(
                    "Location Permission Required",
                    "Please enable location permission in your device settings to scan WiFi networks.",
                )
            return
        except ProbeError as e:
            console.print(f"[muted]Escaneo omitido: {e}[/muted]")
            return

        sample = Sample.from_scan(entries, timestamp)
        with self._lock:
            # stop() o un nuevo start() pueden haber ocurrido durante el escaneo
            if not self._is_current(generation):
                return
            self.buffer.append(sample)
            self.sample_count += 1
            self.last_network_count = len(entries)
            count = self.sample_count
        if self.on_sample:
            self.on_sample(sample, count)

    def clock_tick(self, generation: Optional[int] = None) -> None:
        with self._lock:
            if generation is None:
                generation = self._generation
            if self._is_current(generation):
                self.elapsed_seconds += 1

    def reset(self) -> None:
        with self._lock:
            self.buffer.clear()
            self.sample_count = 0
            self.elapsed_seconds = 0
            self.last_network_count = 0

    def submit(self, client: SubmissionClient, fields: Optional[SessionFields] = None):
        """
        Envía el buffer completo. Si tiene éxito vacía buffer y contadores;
        si falla, la excepción se propaga y todo queda intacto para reintentar.
        """
        with self._lock:
            if self.state is SessionState.RECORDING:
                raise RecordingActiveError()
            if self._submitting or client.busy:
                raise SubmissionBusyError()
            self._submitting = True
            fields = fields or self.fields or SessionFields()
            samples = self.buffer.snapshot()
        try:
            response = client.submit(samples, fields)
            self.reset()
            return response
        finally:
            with self._lock:
                self._submitting = False

    def summary(self) -> pd.DataFrame:
        """Resumen por punto de acceso: muestras, media, mínimo y máximo en dBm."""
        rows = [
            {"BSSID": bssid, "RSSI(dBm)": level}
            for sample in self.buffer.snapshot()
            for bssid, level in sample.levels_by_access_point.items()
        ]
        if not rows:
            return pd.DataFrame(columns=["BSSID", "Muestras", "Media", "Mínimo", "Máximo"])

        df = pd.DataFrame(rows)
        grouped = df.groupby("BSSID")["RSSI(dBm)"]
        summary = pd.DataFrame({
            "Muestras": grouped.count(),
            "Media": grouped.mean().round(2),
            "Mínimo": grouped.min(),
            "Máximo": grouped.max(),
        }).reset_index()
        return summary.sort_values("Media", ascending=False, ignore_index=True)
