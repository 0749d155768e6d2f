import json
from datetime import datetime, timezone

import pytest

from errors import ValidationError
from models import RecordingBuffer, Sample, ScanEntry, SessionFields, SubmissionPayload


BSSID = "AA:BB:CC:DD:EE:FF"


def make_fields(**overrides):
    values = dict(server_url="http://example.test/upload", location="Lab", place="Floor 2", username="ana")
    values.update(overrides)
    return SessionFields(**values)


class TestSample:
    def test_from_scan_keys_by_bssid(self):
        sample = Sample.from_scan([
            ScanEntry(BSSID, -55),
            ScanEntry("11:22:33:44:55:66", -80),
        ])
        assert sample.levels_by_access_point == {BSSID: -55, "11:22:33:44:55:66": -80}

    def test_repeated_bssid_last_occurrence_wins(self):
        sample = Sample.from_scan([ScanEntry(BSSID, -70), ScanEntry(BSSID, -40)])
        assert sample.levels_by_access_point == {BSSID: -40}

    def test_to_dict_uses_iso_timestamp(self):
        ts = datetime(2024, 5, 1, 12, 30, 0, 250000, tzinfo=timezone.utc)
        data = Sample.from_scan([ScanEntry(BSSID, -60)], ts).to_dict()
        assert data == {"timestamp": "2024-05-01T12:30:00.250+00:00", "rssi_values": {BSSID: -60}}
        assert datetime.fromisoformat(data["timestamp"]) == ts

    def test_timestamp_defaults_to_now(self):
        before = datetime.now(timezone.utc)
        sample = Sample.from_scan([])
        assert before <= sample.timestamp <= datetime.now(timezone.utc)


class TestRecordingBuffer:
    def test_keeps_capture_order(self):
        buf = RecordingBuffer()
        samples = [Sample.from_scan([ScanEntry(BSSID, level)]) for level in (-55, -56, -54)]
        for s in samples:
            buf.append(s)
        assert len(buf) == 3
        assert buf.snapshot() == samples

    def test_snapshot_is_a_copy(self):
        buf = RecordingBuffer()
        buf.append(Sample.from_scan([]))
        snap = buf.snapshot()
        buf.clear()
        assert len(snap) == 1
        assert len(buf) == 0


class TestSessionFields:
    def test_complete_fields_validate(self):
        make_fields().validate()

    def test_missing_fields_are_reported(self):
        with pytest.raises(ValidationError) as exc:
            make_fields(place="", username="   ").validate()
        assert exc.value.missing == ["place", "username"]


def test_payload_json_shape():
    ts = datetime(2024, 5, 1, tzinfo=timezone.utc)
    samples = [Sample.from_scan([ScanEntry(BSSID, -50)], ts)]
    payload = SubmissionPayload.build(samples, make_fields())
    body = json.loads(payload.to_json())
    assert body == {
        "username": "ana",
        "location": "Lab",
        "place": "Floor 2",
        "samples": [{"timestamp": "2024-05-01T00:00:00.000+00:00", "rssi_values": {BSSID: -50}}],
    }
    assert "server_url" not in body
