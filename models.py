# models.py
import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from errors import ValidationError


class PermissionState(str, Enum):
    CHECKING = "checking"
    GRANTED = "granted"
    DENIED = "denied"
    ERROR = "error"


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"


@dataclass(frozen=True)
class ScanEntry:
    access_point_id: str              # BSSID
    level: int                        # dBm
    ssid: str = ""
    frequency_mhz: Optional[int] = None


@dataclass(frozen=True)
class SignalReading:
    network_name: str
    signal_level: Union[int, str]     # dBm o valor centinela


@dataclass(frozen=True)
class Sample:
    timestamp: datetime                       # instante de la captura (UTC)
    levels_by_access_point: Dict[str, int]    # BSSID -> dBm

    @classmethod
    def from_scan(cls, entries: Iterable[ScanEntry], timestamp: Optional[datetime] = None) -> "Sample":
        """Construye una muestra; si un BSSID se repite gana la última aparición."""
        levels: Dict[str, int] = {}
        for entry in entries:
            levels[entry.access_point_id] = entry.level
        return cls(timestamp=timestamp or datetime.now(timezone.utc), levels_by_access_point=levels)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(timespec="milliseconds"),
            "rssi_values": dict(self.levels_by_access_point),
        }


class RecordingBuffer:
    """Secuencia ordenada de muestras, protegida por un lock."""

    def __init__(self) -> None:
        self._samples: List[Sample] = []
        self._lock = threading.Lock()

    def append(self, sample: Sample) -> None:
        with self._lock:
            self._samples.append(sample)

    def snapshot(self) -> List[Sample]:
        """Copia de las muestras en orden de captura."""
        with self._lock:
            return list(self._samples)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)


@dataclass
class SessionFields:
    server_url: str = ""
    location: str = ""
    place: str = ""
    username: str = ""

    def missing(self) -> List[str]:
        return [
            name for name in ("server_url", "location", "place", "username")
            if not getattr(self, name).strip()
        ]

    def validate(self) -> None:
        missing = self.missing()
        if missing:
            raise ValidationError(missing)


@dataclass
class SubmissionPayload:
    username: str
    place: str
    location: str
    samples: List[Sample] = field(default_factory=list)

    @classmethod
    def build(cls, samples: Iterable[Sample], fields: SessionFields) -> "SubmissionPayload":
        return cls(
            username=fields.username,
            place=fields.place,
            location=fields.location,
            samples=list(samples),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "location": self.location,
            "place": self.place,
            "samples": [s.to_dict() for s in self.samples],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
