# ui.py
"""
Diálogos de consola: avisos bloqueantes, petición de campos y paneles.
"""

from typing import Optional

import pandas as pd
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import SIGNAL_RANGES
from models import SessionFields, SignalReading
from theme import console
from utils import is_sentinel, quality_label, quality_style, signal_bars


def alert(title: str, message: str) -> None:
    """Muestra un aviso y espera a que el usuario lo acepte."""
    console.print(Panel(message, title=f"[error]{title}[/error]", border_style="red"))
    Prompt.ask("Pulsa [bold]Enter[/bold] para continuar", default="", show_default=False, console=console)


def ask_text(label: str, current: Optional[str] = None) -> str:
    """Devuelve 'current' si ya tiene valor; si no, lo pide por consola."""
    if current and current.strip():
        return current.strip()
    return Prompt.ask(label, console=console).strip()


def ask_session_fields(
    server_url: Optional[str],
    location: Optional[str],
    place: Optional[str],
    username: Optional[str]
) -> SessionFields:
    return SessionFields(
        server_url=ask_text("URL del servidor", server_url),
        location=ask_text("Ubicación (location)", location),
        place=ask_text("Lugar (place)", place),
        username=ask_text("Usuario (username)", username),
    )


def confirm(question: str, default: bool = True) -> bool:
    return Confirm.ask(question, default=default, console=console)


def reading_panel(reading: SignalReading, refreshing: bool = False) -> Panel:
    """Panel con la red actual, el RSSI, su calidad y las barras."""
    value = reading.signal_level
    label = quality_label(value)
    value_text = f"[bold]{value}[/bold]" if is_sentinel(value) else f"[rssi][bold]{value}[/bold] dBm[/rssi]"

    body = Table.grid(padding=(0, 2))
    body.add_column(justify="right", style="bold")
    body.add_column()
    body.add_row("Red actual", f"[ap]{reading.network_name or '-'}[/ap]")
    body.add_row("RSSI", value_text)
    body.add_row("Calidad", f"[{quality_style(label)}]{label}[/]")
    body.add_row("Barras", signal_bars(value))
    if refreshing:
        body.add_row("", "[muted]Actualizando...[/muted]")
    return Panel(body, title="WiFi Signal", border_style="cyan")


def print_signal_ranges() -> None:
    table = Table(title="Intensidad de señal Wi-Fi (RSSI)")
    table.add_column("Rango", style="bold")
    table.add_column("Calidad")
    for rng, label in SIGNAL_RANGES.items():
        table.add_row(rng, f"[{quality_style(label)}]{label}[/]")
    console.print(table)
    console.print(
        "[muted]El RSSI mide la intensidad en dBm; valores más cercanos a 0 indican mejor señal.[/muted]"
    )


def print_summary(summary: pd.DataFrame, sample_count: int, elapsed: int, last_network_count: int = 0) -> None:
    """Muestra el resumen por punto de acceso de la grabación."""
    if summary.empty:
        console.print("[invalid]No hay datos para calcular medias.[/]")
        return

    table = Table(
        title=f"Resumen de la sesión ({sample_count} muestras, {elapsed} s)",
        caption=f"Redes en el último escaneo: {last_network_count}",
    )
    table.add_column("BSSID", style="ap")
    table.add_column("Muestras", justify="right")
    table.add_column("Media", justify="right")
    table.add_column("Mínimo", justify="right")
    table.add_column("Máximo", justify="right")
    for row in summary.itertuples(index=False):
        bssid, count, mean, low, high = row
        table.add_row(bssid, str(count), f"[rssi_mean]{mean:.2f}[/]", str(low), str(high))
    console.print(table)
