# wifi_probe.py
"""
Acceso a la interfaz Wi-Fi del dispositivo.

Define el contrato que usan los controladores (WifiProbe, PermissionGate)
y dos implementaciones: Android mediante Termux:API y Linux mediante
'iwconfig' / 'iw'. Los mensajes de error de las herramientas externas se
traducen aquí a excepciones tipadas; el resto del programa nunca compara
textos de error.
"""

import json
import re
import shutil
import subprocess
import threading
from typing import Any, List, Optional, Protocol, Tuple

from config import DEFAULT_INTERFACE, PROBE_TIMEOUT
from errors import PermissionDeniedError, ProbeError
from models import PermissionState, ScanEntry
from theme import console


class WifiProbe(Protocol):
    def current_network_name(self) -> str: ...
    def current_signal_strength(self) -> int: ...
    def scan_networks(self) -> List[ScanEntry]: ...


class PermissionGate(Protocol):
    def request(self) -> PermissionState: ...


def _looks_like_permission_problem(message: str) -> bool:
    text = message.lower()
    return "permission" in text or "location" in text or "not permitted" in text


def _run(cmd: List[str], timeout: float = PROBE_TIMEOUT) -> subprocess.CompletedProcess:
    """Ejecuta un comando externo; los fallos de ejecución se convierten en ProbeError."""
    try:
        return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        raise ProbeError(f"Comando '{cmd[0]}' no encontrado.")
    except subprocess.TimeoutExpired:
        raise ProbeError(f"'{' '.join(cmd)}' excedió el tiempo de espera.")


# -----------------------------------------------------------------------------
# Android (Termux:API)
# -----------------------------------------------------------------------------

class TermuxWifiProbe:
    """
    Consulta la Wi-Fi con Termux:API.

    'termux-wifi-connectioninfo' devuelve un objeto JSON con ssid, bssid y rssi;
    'termux-wifi-scaninfo' devuelve una lista de redes. Ambos devuelven un objeto
    con 'API_ERROR' (o 'error') cuando falta el permiso de ubicación.
    """

    def __init__(self, timeout: float = PROBE_TIMEOUT):
        self.timeout = timeout

    def _call(self, command: str) -> Any:
        result = _run([command], self.timeout)
        output = result.stdout.strip()
        if result.returncode != 0:
            message = result.stderr.strip() or output or f"{command} falló (rc={result.returncode})"
            if _looks_like_permission_problem(message):
                raise PermissionDeniedError(message)
            raise ProbeError(message)
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise ProbeError(f"Respuesta no válida de {command}: {e}")

        if isinstance(data, dict):
            message = data.get("API_ERROR") or data.get("error")
            if message:
                if _looks_like_permission_problem(str(message)):
                    raise PermissionDeniedError(str(message))
                raise ProbeError(str(message))
        return data

    def connection_info(self) -> dict:
        data = self._call("termux-wifi-connectioninfo")
        if not isinstance(data, dict):
            raise ProbeError("Formato inesperado de termux-wifi-connectioninfo.")
        return data

    def current_network_name(self) -> str:
        ssid = self.connection_info().get("ssid")
        if not ssid or ssid == "<unknown ssid>":
            raise ProbeError("No conectado a ninguna red Wi-Fi.")
        return ssid

    def current_signal_strength(self) -> int:
        rssi = self.connection_info().get("rssi")
        if rssi is None:
            raise ProbeError("RSSI no disponible.")
        return int(rssi)

    def current_access_point(self) -> Optional[str]:
        bssid = self.connection_info().get("bssid")
        return bssid.upper() if bssid else None

    def scan_networks(self) -> List[ScanEntry]:
        data = self._call("termux-wifi-scaninfo")
        if not isinstance(data, list):
            raise ProbeError("Formato inesperado de termux-wifi-scaninfo.")
        entries = []
        for ap in data:
            bssid = ap.get("bssid")
            rssi = ap.get("rssi")
            if not bssid or rssi is None:
                continue
            entries.append(ScanEntry(
                access_point_id=bssid.upper(),
                level=int(rssi),
                ssid=ap.get("ssid", "") or "",
                frequency_mhz=ap.get("frequency_mhz"),
            ))
        return entries


class TermuxPermissionGate:
    """Solicita el permiso de ubicación en primer plano a través de Termux:API."""

    def __init__(self, timeout: float = PROBE_TIMEOUT):
        self.timeout = timeout

    def request(self) -> PermissionState:
        try:
            result = _run(["termux-location", "-p", "network", "-r", "last"], self.timeout)
        except ProbeError as e:
            console.print(f"[error]Error solicitando permisos: {e}[/error]")
            return PermissionState.ERROR
        message = f"{result.stdout} {result.stderr}"
        if result.returncode != 0 or "permission" in message.lower():
            return PermissionState.DENIED
        return PermissionState.GRANTED


# -----------------------------------------------------------------------------
# Linux (iwconfig / iw)
# -----------------------------------------------------------------------------

class LinuxWifiProbe:
    """
    Consulta la Wi-Fi de una interfaz Linux.

    La red actual se lee de 'iwconfig'; el escaneo usa 'iw dev <iface> scan',
    que requiere privilegios (CAP_NET_ADMIN).
    """

    ESSID_RE = re.compile(r'ESSID:"(.*)"')
    SIGNAL_RE = re.compile(r"Signal level=(-?\d+)\s+dBm")
    AP_RE = re.compile(r"Access Point:\s+([0-9A-Fa-f:]{17})")

    BSS_RE = re.compile(r"^BSS\s+([0-9a-fA-F:]{17})", re.IGNORECASE)
    SCAN_SIGNAL_RE = re.compile(r"signal:\s*(-?\d+(?:\.\d+)?)\s*dBm", re.IGNORECASE)
    SSID_RE = re.compile(r"^SSID:\s*(.*)$")
    FREQ_RE = re.compile(r"^freq:\s*(\d+)")

    def __init__(self, interface: str = DEFAULT_INTERFACE, timeout: float = PROBE_TIMEOUT):
        self.interface = interface
        self.timeout = timeout

    def _iwconfig(self) -> str:
        result = _run(["iwconfig", self.interface], self.timeout)
        if result.returncode != 0:
            raise ProbeError(result.stderr.strip() or f"iwconfig {self.interface} falló")
        return result.stdout

    def current_network_name(self) -> str:
        m = self.ESSID_RE.search(self._iwconfig())
        if not m or not m.group(1):
            raise ProbeError(f"{self.interface} no está conectada.")
        return m.group(1)

    def current_signal_strength(self) -> int:
        m = self.SIGNAL_RE.search(self._iwconfig())
        if not m:
            raise ProbeError(f"Sin nivel de señal en {self.interface}.")
        return int(m.group(1))

    def current_access_point(self) -> Optional[str]:
        m = self.AP_RE.search(self._iwconfig())
        return m.group(1).upper() if m else None

    def scan_networks(self) -> List[ScanEntry]:
        result = _run(["iw", "dev", self.interface, "scan"], self.timeout)
        if result.returncode != 0:
            message = result.stderr.strip() or f"iw scan falló (rc={result.returncode})"
            if _looks_like_permission_problem(message):
                raise PermissionDeniedError(message)
            raise ProbeError(message)
        return self.parse_scan(result.stdout)

    @classmethod
    def parse_scan(cls, text: str) -> List[ScanEntry]:
        """Convierte la salida de 'iw scan' en entradas (BSSID, nivel, SSID, frecuencia)."""
        entries: List[ScanEntry] = []
        bssid: Optional[str] = None
        level: Optional[float] = None
        ssid = ""
        freq: Optional[int] = None

        def flush() -> None:
            if bssid and level is not None:
                entries.append(ScanEntry(
                    access_point_id=bssid,
                    level=int(round(level)),
                    ssid=ssid,
                    frequency_mhz=freq,
                ))

        for raw in text.splitlines():
            line = raw.strip()
            m = cls.BSS_RE.match(line)
            if m:
                flush()
                bssid, level, ssid, freq = m.group(1).upper(), None, "", None
                continue
            m = cls.SCAN_SIGNAL_RE.search(line)
            if m:
                level = float(m.group(1))
                continue
            m = cls.SSID_RE.match(line)
            if m:
                ssid = m.group(1).strip()
                continue
            m = cls.FREQ_RE.match(line)
            if m:
                freq = int(m.group(1))
        flush()
        return entries


class GrantedPermissionGate:
    """Plataforma sin permiso explícito: siempre concedido."""

    def request(self) -> PermissionState:
        return PermissionState.GRANTED


# -----------------------------------------------------------------------------
# Estado de permisos compartido por los controladores
# -----------------------------------------------------------------------------

class PermissionTracker:
    """
    Guarda el estado del permiso de ubicación de una pantalla.
    Solo cambia mediante una solicitud explícita o una denegación detectada.
    """

    def __init__(self, gate: PermissionGate):
        self.gate = gate
        self.state = PermissionState.CHECKING
        self._lock = threading.Lock()

    @property
    def is_granted(self) -> bool:
        return self.state is PermissionState.GRANTED

    def request(self) -> bool:
        """Solicitud explícita; devuelve True si queda concedido."""
        try:
            state = self.gate.request()
        except Exception as e:
            console.print(f"[error]Error solicitando permisos: {e}[/error]")
            state = PermissionState.ERROR
        with self._lock:
            self.state = state
        return state is PermissionState.GRANTED

    def ensure(self) -> bool:
        """Solicita el permiso solo si aún no está concedido."""
        return self.is_granted or self.request()

    def deny(self) -> None:
        with self._lock:
            self.state = PermissionState.DENIED


def create_probe(platform: str = "auto", interface: str = DEFAULT_INTERFACE) -> Tuple[WifiProbe, PermissionGate]:
    """Devuelve la pareja (probe, gate) adecuada para la plataforma."""
    if platform == "auto":
        platform = "android" if shutil.which("termux-wifi-scaninfo") else "linux"
    if platform == "android":
        return TermuxWifiProbe(), TermuxPermissionGate()
    if platform == "linux":
        return LinuxWifiProbe(interface), GrantedPermissionGate()
    raise ValueError(f"Plataforma desconocida: {platform}")
