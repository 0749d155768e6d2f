#!/usr/bin/env python3
# main.py
"""
Script principal con dos comandos:

- monitor: muestra en vivo la red actual y su intensidad de señal (RSSI).
- record:  graba cada segundo el RSSI de todos los puntos de acceso visibles
           bajo unas etiquetas (usuario, lugar, ubicación) y lo envía a un servidor.
"""

import queue
import time
from typing import Optional, Tuple

import typer
from rich.live import Live

import ui
from config import DEFAULT_INTERFACE, MONITOR_INTERVAL, PLATFORMS
from data_collector import RecordingSession
from errors import EmptyBufferError, SubmissionError, WifiRecorderError
from models import Sample, SignalReading
from monitoring import SignalMonitor
from submission import SubmissionClient
from theme import console
from utils import build_sample_row
from wifi_probe import create_probe

app = typer.Typer(add_completion=False)


def _probe_for(platform: str, interface: str):
    if platform not in PLATFORMS:
        console.print(f"[error]Plataforma no válida: {platform} (opciones: {', '.join(PLATFORMS)})[/error]")
        raise typer.Exit(code=1)
    return create_probe(platform, interface)


@app.command()
def monitor(
    interval: float = typer.Option(
        MONITOR_INTERVAL, '-i', '--interval',
        help='Intervalo de sondeo en segundos (def: 5.0).'
    ),
    platform: str = typer.Option(
        'auto', '-p', '--platform',
        help='Plataforma: auto, android (Termux) o linux.'
    ),
    interface: str = typer.Option(
        DEFAULT_INTERFACE, '-w', '--interface',
        help='Interfaz Wi-Fi en Linux (ej: wlan0).'
    ),
    once: bool = typer.Option(
        False, '--once',
        help='Hace una única lectura y termina.'
    )
):
    """Muestra la intensidad de la señal Wi-Fi actual."""
    probe, gate = _probe_for(platform, interface)
    alerts: "queue.Queue[Tuple[str, str]]" = queue.Queue()

    if once:
        signal_monitor = SignalMonitor(probe, gate, interval, on_alert=lambda t, m: alerts.put((t, m)))
        signal_monitor.refresh()
        console.print(ui.reading_panel(signal_monitor.reading))
        while not alerts.empty():
            ui.alert(*alerts.get_nowait())
        return

    ui.print_signal_ranges()
    live = Live(console=console, refresh_per_second=4)

    def on_update(reading: SignalReading) -> None:
        live.update(ui.reading_panel(reading, signal_monitor.refreshing))

    signal_monitor = SignalMonitor(
        probe, gate, interval,
        on_update=on_update,
        on_alert=lambda t, m: alerts.put((t, m))
    )

    try:
        with live:
            live.update(ui.reading_panel(signal_monitor.reading))
            if not signal_monitor.start():
                alerts.put((
                    "Location Permission Required",
                    "This app needs location permission to access WiFi information.",
                ))
            while True:
                try:
                    title, message = alerts.get(timeout=0.25)
                except queue.Empty:
                    continue
                live.stop()
                ui.alert(title, message)
                if not ui.confirm("¿Volver a solicitar el permiso?"):
                    break
                live.start()
                signal_monitor.request_permission()
    except KeyboardInterrupt:
        console.print("\n[error]Monitorización detenida por el usuario.[/error]")
    finally:
        signal_monitor.stop()


def _submit_with_retry(session: RecordingSession, client: SubmissionClient) -> bool:
    """Ofrece el envío y permite reintentar mientras falle."""
    while ui.confirm("¿Enviar las muestras al servidor?"):
        try:
            session.submit(client)
            console.print("[success]Muestras enviadas; buffer vaciado.[/success]")
            return True
        except EmptyBufferError as e:
            ui.alert("Nada que enviar", str(e))
            return False
        except SubmissionError as e:
            ui.alert("Error de envío", f"{e}\nLas muestras se conservan para reintentar.")
    return False


@app.command()
def record(
    server_url: Optional[str] = typer.Option(
        None, '-s', '--server-url',
        help='URL a la que se envían las muestras (POST JSON).'
    ),
    location: Optional[str] = typer.Option(
        None, '-l', '--location',
        help='Ubicación de la grabación.'
    ),
    place: Optional[str] = typer.Option(
        None, '-P', '--place',
        help='Lugar de la grabación.'
    ),
    username: Optional[str] = typer.Option(
        None, '-u', '--username',
        help='Nombre de usuario.'
    ),
    platform: str = typer.Option(
        'auto', '-p', '--platform',
        help='Plataforma: auto, android (Termux) o linux.'
    ),
    interface: str = typer.Option(
        DEFAULT_INTERFACE, '-w', '--interface',
        help='Interfaz Wi-Fi en Linux (ej: wlan0).'
    )
):
    """Graba el RSSI de todas las redes visibles y lo envía al servidor."""
    probe, gate = _probe_for(platform, interface)
    fields = ui.ask_session_fields(server_url, location, place, username)
    alerts: "queue.Queue[Tuple[str, str]]" = queue.Queue()

    def on_sample(sample: Sample, count: int) -> None:
        console.print(build_sample_row(sample, count))

    session = RecordingSession(
        probe, gate,
        on_sample=on_sample,
        on_alert=lambda t, m: alerts.put((t, m))
    )

    try:
        session.start(fields)
    except WifiRecorderError as e:
        ui.alert("No se pudo iniciar la grabación", str(e))
        raise typer.Exit(code=1)

    console.print("Pulsa [bold]Ctrl+C[/bold] para detener la grabación.\n")
    try:
        while session.is_recording:
            time.sleep(0.25)
    except KeyboardInterrupt:
        console.print("")
    finally:
        session.stop()

    while not alerts.empty():
        ui.alert(*alerts.get_nowait())

    ui.print_summary(
        session.summary(), session.sample_count, session.elapsed_seconds, session.last_network_count
    )
    _submit_with_retry(session, SubmissionClient())
    console.print("\n[success]Script finalizado.[/success]")


if __name__ == "__main__":
    app()
