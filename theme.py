# theme.py
from dataclasses import dataclass
from rich.theme import Theme
from rich.console import Console

@dataclass(frozen=True)
class AppTheme:
    # Colores semánticos
    info: str = "cyan"
    warn: str = "yellow"
    error: str = "bold red"
    invalid: str = "red"
    success: str = "green"
    muted: str = "grey50"

    # Datos de señal
    rssi: str = "green1"
    ap: str = "magenta"
    timestamp: str = "cyan"
    time: str = "cornflower_blue"

    # Niveles de calidad
    excellent: str = "bold green1"
    good: str = "green"
    fair: str = "yellow"
    poor: str = "dark_orange3"
    very_poor: str = "red"

    def rich_theme(self) -> Theme:
        return Theme({
            "info":        self.info,
            "warn":        self.warn,
            "error":       self.error,
            "invalid":     self.invalid,
            "success":     self.success,
            "muted":       self.muted,
            "rssi":        self.rssi,
            "ap":          self.ap,
            "timestamp":   self.timestamp,
            "time":        self.time,
            "rssi_mean":   f"bold underline {self.rssi}",
            "excellent":   self.excellent,
            "good":        self.good,
            "fair":        self.fair,
            "poor":        self.poor,
            "very_poor":   self.very_poor,
        })

APP_THEME = AppTheme()
console = Console(theme=APP_THEME.rich_theme())
