# utils.py
from typing import List, Optional, Tuple, Union
from models import Sample
from config import (
    BAR_FLOOR, BAR_THRESHOLDS, QUALITY_FLOOR, QUALITY_THRESHOLDS, SENTINELS,
)

SignalValue = Union[int, str]


def is_sentinel(value: SignalValue) -> bool:
    """True si el valor es uno de los textos centinela (no numérico)."""
    return isinstance(value, str) and value in SENTINELS


def _tier(value: SignalValue, thresholds: List[Tuple[int, str]], floor: str) -> str:
    if is_sentinel(value):
        return value
    level = int(value)
    for threshold, label in thresholds:
        if level >= threshold:
            return label
    return floor


def quality_label(value: SignalValue) -> str:
    """
    Etiqueta cualitativa de un RSSI en dBm.
    Los centinelas se devuelven tal cual, sin intentar convertirlos a número.
    """
    return _tier(value, QUALITY_THRESHOLDS, QUALITY_FLOOR)


def signal_bars(value: SignalValue) -> str:
    """Representación en 4 barras; los centinelas se devuelven tal cual."""
    return _tier(value, BAR_THRESHOLDS, BAR_FLOOR)


def quality_style(label: str) -> str:
    """Nombre de estilo Rich para una etiqueta de calidad."""
    style = label.lower().replace(" ", "_")
    return style if style in ("excellent", "good", "fair", "poor", "very_poor") else "muted"


def format_stat(value: Optional[float], fmt: str, unit: str, color: str, width: int) -> str:
    """
    - value: el valor numérico, o None.
    - fmt: formato estilo '{:.2f}' antes de la unidad.
    - unit: sufijo (p.ej. ' dBm').
    - color: nombre de color Rich.
    - width: ancho fijo de caracteres del texto visible.
    """
    raw = "N/A" if value is None else fmt.format(value) + unit
    padded = raw.ljust(width)
    return f"[{color}]{padded}[/{color}]"


def strongest_access_point(sample: Sample) -> Optional[Tuple[str, int]]:
    """Par (BSSID, dBm) con mayor nivel de la muestra, o None si está vacía."""
    if not sample.levels_by_access_point:
        return None
    return max(sample.levels_by_access_point.items(), key=lambda item: item[1])


def build_sample_row(sample: Sample, count: int) -> str:
    """
    Construye una línea de estado a partir de un Sample, con las columnas alineadas.
    """
    ts = sample.timestamp.astimezone().strftime("%H:%M:%S.%f")[:-3]
    best = strongest_access_point(sample)
    ap_mac, level = best if best else ("-", None)

    return (
        f"[timestamp]{ts:<14}[/timestamp]| "
        f"[time]#{count:<6}[/time]"
        f"APs: [info]{len(sample.levels_by_access_point):<5}[/info]"
        f"Mejor: [ap]{ap_mac:<19}[/ap]"
        f"{format_stat(level, '{:.0f}', ' dBm', 'rssi', 10)}"
    )
