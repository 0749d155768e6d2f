# monitoring.py
"""
Módulo de monitorización.

Contiene 'SignalMonitor', que consulta periódicamente el nombre de la red
actual y su intensidad de señal (RSSI) y publica la última lectura junto
con su calificación cualitativa.
"""

import threading
from typing import Callable, Optional, Union

from config import ERROR, LOADING, MONITOR_INTERVAL, NO_ACCESS, PERMISSION_REQUIRED
from data_collector import AlertCallback, RecurringTask
from errors import PermissionDeniedError, ProbeError
from models import PermissionState, SignalReading
from theme import console
from utils import quality_label, signal_bars
from wifi_probe import PermissionGate, PermissionTracker, WifiProbe


class SignalMonitor:
    """
    Sondea la red actual cada 'interval' segundos.

    Un fallo de permiso detiene el sondeo y avisa al usuario; cualquier otro
    fallo muestra el centinela "Error" y el sondeo continúa en el siguiente tick.
    """

    def __init__(
        self,
        probe: WifiProbe,
        gate: PermissionGate,
        interval: float = MONITOR_INTERVAL,
        on_update: Optional[Callable[[SignalReading], None]] = None,
        on_alert: Optional[AlertCallback] = None
    ):
        self.probe = probe
        self.permission = PermissionTracker(gate)
        self.interval = interval
        self.on_update = on_update
        self.on_alert = on_alert

        self.network_name = ""
        self.signal: Union[int, str] = LOADING
        self.refreshing = False

        self._started = False
        self._task: Optional[RecurringTask] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def permission_state(self) -> PermissionState:
        return self.permission.state

    @property
    def reading(self) -> SignalReading:
        return SignalReading(network_name=self.network_name, signal_level=self.signal)

    @property
    def quality(self) -> str:
        return quality_label(self.signal)

    @property
    def bars(self) -> str:
        return signal_bars(self.signal)

    def _mark_denied(self) -> None:
        self.signal = PERMISSION_REQUIRED
        self.network_name = NO_ACCESS
        self._notify()

    def _notify(self) -> None:
        if self.on_update:
            self.on_update(self.reading)

    def start(self) -> bool:
        """Pide permiso si hace falta, sondea una vez y arranca el temporizador."""
        self._started = True
        if not self.permission.ensure():
            self._mark_denied()
            return False
        self.poll()
        self._start_timer()
        return True

    def _start_timer(self) -> None:
        with self._lock:
            if self._task is not None or not self.permission.is_granted:
                return
            self._task = RecurringTask("signal-monitor", self.interval, self.poll)
            self._task.start()
        console.print(f"Monitorización iniciada (cada [info]{self.interval:g} s[/info])")

    def stop(self) -> None:
        """Cancela el temporizador pendiente; idempotente."""
        self._started = False
        self._cancel_timer()

    def _detach_timer(self) -> Optional[RecurringTask]:
        # Requiere self._lock. Invalida cualquier sondeo en curso.
        self._generation += 1
        task, self._task = self._task, None
        return task

    def _cancel_timer(self) -> None:
        with self._lock:
            task = self._detach_timer()
        if task is not None:
            task.cancel()

    def poll(self) -> None:
        """
        Lee nombre de red y RSSI y actualiza los campos publicados.

        Si stop() se llama mientras la consulta está en curso, el resultado
        se descarta.
        """
        if not self.permission.is_granted:
            return
        with self._lock:
            generation = self._generation
        self.refreshing = True
        level: Union[int, str]
        denied: Optional[PermissionDeniedError] = None
        try:
            name = self.probe.current_network_name()
            level = self.probe.current_signal_strength()
        except PermissionDeniedError as e:
            denied = e
            name, level = NO_ACCESS, PERMISSION_REQUIRED
        except ProbeError as e:
            console.print(f"[muted]Error obteniendo información Wi-Fi: {e}[/muted]")
            name, level = self.network_name, ERROR

        task = None
        with self._lock:
            self.refreshing = False
            if generation != self._generation:
                return
            if denied is not None:
                task = self._detach_timer()
                self.permission.deny()
            self.network_name = name
            self.signal = level
        if task is not None:
            task.cancel()

        if denied is not None:
            console.print(f"[error]Permiso de ubicación denegado: {denied}[/error]")
            if self.on_alert:
                self.on_alert(
                    "Location Permission Required",
                    "Please enable location permission in your device settings to access WiFi information.",
                )
        self._notify()

    def refresh(self) -> bool:
        """Refresco manual. No hace nada mientras el permiso esté denegado."""
        if self.permission_state is PermissionState.DENIED:
            return False
        if not self.permission.ensure():
            self._mark_denied()
            return False
        self.poll()
        return True

    def request_permission(self) -> bool:
        """Vuelve a solicitar el permiso; si se concede, reanuda el sondeo."""
        if not self.permission.request():
            self._mark_denied()
            return False
        if self._started:
            self.poll()
            self._start_timer()
        return True
