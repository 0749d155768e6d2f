# config.py
"""
Módulo de configuración.

Almacena constantes y configuraciones globales para la aplicación:
intervalos de muestreo, umbrales de calidad de señal y los valores
centinela que se muestran en lugar de un RSSI numérico.
"""

from typing import Dict, List, Tuple


# Intervalos (segundos)
MONITOR_INTERVAL = 5.0
SAMPLE_INTERVAL = 1.0
CLOCK_INTERVAL = 1.0

# Tiempos máximos (segundos)
HTTP_TIMEOUT = 10.0
PROBE_TIMEOUT = 30.0

# Valores centinela de la lectura mostrada
LOADING = "Loading..."
ERROR = "Error"
PERMISSION_REQUIRED = "Permission required"
NO_ACCESS = "No access"

SENTINELS = (LOADING, ERROR, PERMISSION_REQUIRED)

# (umbral dBm, etiqueta); el valor exacto del umbral pertenece al nivel superior
QUALITY_THRESHOLDS: List[Tuple[int, str]] = [
    (-50, "Excellent"),
    (-60, "Good"),
    (-70, "Fair"),
    (-80, "Poor"),
]
QUALITY_FLOOR = "Very Poor"

BAR_THRESHOLDS: List[Tuple[int, str]] = [
    (-55, "█ █ █ █"),
    (-65, "█ █ █ ░"),
    (-75, "█ █ ░ ░"),
    (-85, "█ ░ ░ ░"),
]
BAR_FLOOR = "░ ░ ░ ░"

# Leyenda informativa del monitor
SIGNAL_RANGES: Dict[str, str] = {
    "-50 a -30 dBm": "Excellent",
    "-67 a -50 dBm": "Good",
    "-80 a -67 dBm": "Fair",
    "Menos de -80 dBm": "Poor",
}

PLATFORMS = ("auto", "android", "linux")
DEFAULT_INTERFACE = "wlan0"
