"""Dobles de prueba compartidos: radio Wi-Fi y gate de permisos controlables."""

from typing import List, Optional

import pytest

from errors import PermissionDeniedError, ProbeError
from models import PermissionState, ScanEntry


class FakeRadio:
    """
    Radio programable. 'scans' es una cola de resultados: cada elemento es una
    lista de ScanEntry o una excepción que se lanzará en esa llamada.
    """

    def __init__(self, name: str = "HomeNet", level: int = -55):
        self.name = name
        self.level = level
        self.scans: List[object] = []
        self.error: Optional[Exception] = None
        self.scan_calls = 0
        self.signal_calls = 0

    def current_network_name(self) -> str:
        if self.error:
            raise self.error
        return self.name

    def current_signal_strength(self) -> int:
        self.signal_calls += 1
        if self.error:
            raise self.error
        return self.level

    def scan_networks(self) -> List[ScanEntry]:
        self.scan_calls += 1
        if not self.scans:
            return []
        result = self.scans.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeGate:
    def __init__(self, *answers: PermissionState):
        self.answers = list(answers) or [PermissionState.GRANTED]
        self.calls = 0

    def request(self) -> PermissionState:
        self.calls += 1
        if len(self.answers) > 1:
            return self.answers.pop(0)
        return self.answers[0]


@pytest.fixture
def radio():
    return FakeRadio()


@pytest.fixture
def gate():
    return FakeGate(PermissionState.GRANTED)


@pytest.fixture
def denied_gate():
    return FakeGate(PermissionState.DENIED)


@pytest.fixture
def permission_error():
    return PermissionDeniedError("Location permission is required")


@pytest.fixture
def radio_error():
    return ProbeError("scan busy")
