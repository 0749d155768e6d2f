import json
import subprocess

import pytest

from errors import PermissionDeniedError, ProbeError
from models import PermissionState, ScanEntry
from wifi_probe import (
    GrantedPermissionGate, LinuxWifiProbe, PermissionTracker, TermuxPermissionGate,
    TermuxWifiProbe, create_probe,
)

from conftest import FakeGate


IW_SCAN = """\
BSS aa:bb:cc:dd:ee:ff(on wlan0) -- associated
	TSF: 1234 usec (0d, 00:00:00)
	freq: 2412
	signal: -48.00 dBm
	SSID: HomeNet
BSS 11:22:33:44:55:66(on wlan0)
	freq: 5180
	signal: -71.00 dBm
	SSID:
BSS 99:88:77:66:55:44(on wlan0)
	freq: 2437
"""

IWCONFIG = """\
wlan0     IEEE 802.11  ESSID:"HomeNet"
          Mode:Managed  Frequency:2.412 GHz  Access Point: aa:bb:cc:dd:ee:ff
          Link Quality=60/70  Signal level=-50 dBm
"""


def completed(stdout="", stderr="", returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def run(mocker):
    return mocker.patch("wifi_probe.subprocess.run")


class TestLinuxProbe:
    def test_parse_scan(self):
        entries = LinuxWifiProbe.parse_scan(IW_SCAN)
        assert entries == [
            ScanEntry("AA:BB:CC:DD:EE:FF", -48, "HomeNet", 2412),
            ScanEntry("11:22:33:44:55:66", -71, "", 5180),
        ]

    def test_current_network(self, run):
        run.return_value = completed(IWCONFIG)
        probe = LinuxWifiProbe("wlan0")
        assert probe.current_network_name() == "HomeNet"
        assert probe.current_signal_strength() == -50
        assert probe.current_access_point() == "AA:BB:CC:DD:EE:FF"

    def test_not_connected_is_probe_error(self, run):
        run.return_value = completed('wlan0     IEEE 802.11  ESSID:off/any\n')
        with pytest.raises(ProbeError):
            LinuxWifiProbe("wlan0").current_signal_strength()

    def test_scan_without_privileges_is_permission_error(self, run):
        run.return_value = completed(stderr="command failed: Operation not permitted (-1)", returncode=255)
        with pytest.raises(PermissionDeniedError):
            LinuxWifiProbe("wlan0").scan_networks()

    def test_scan_other_failure_is_probe_error(self, run):
        run.return_value = completed(stderr="command failed: Device or resource busy (-16)", returncode=240)
        with pytest.raises(ProbeError) as exc:
            LinuxWifiProbe("wlan0").scan_networks()
        assert not isinstance(exc.value, PermissionDeniedError)

    def test_missing_command_is_probe_error(self, run):
        run.side_effect = FileNotFoundError()
        with pytest.raises(ProbeError):
            LinuxWifiProbe("wlan0").scan_networks()

    def test_timeout_is_probe_error(self, run):
        run.side_effect = subprocess.TimeoutExpired(cmd="iw", timeout=1)
        with pytest.raises(ProbeError):
            LinuxWifiProbe("wlan0").scan_networks()


class TestTermuxProbe:
    def test_connection_info(self, run):
        run.return_value = completed(json.dumps({"ssid": "HomeNet", "rssi": -62, "bssid": "aa:bb:cc:dd:ee:ff"}))
        probe = TermuxWifiProbe()
        assert probe.current_network_name() == "HomeNet"
        assert probe.current_signal_strength() == -62
        assert probe.current_access_point() == "AA:BB:CC:DD:EE:FF"

    def test_unknown_ssid_is_probe_error(self, run):
        run.return_value = completed(json.dumps({"ssid": "<unknown ssid>", "rssi": -127}))
        with pytest.raises(ProbeError):
            TermuxWifiProbe().current_network_name()

    def test_scan(self, run):
        run.return_value = completed(json.dumps([
            {"bssid": "aa:bb:cc:dd:ee:ff", "rssi": -55, "ssid": "HomeNet", "frequency_mhz": 2412},
            {"bssid": "aa:bb:cc:dd:ee:ff", "rssi": -40, "ssid": "HomeNet", "frequency_mhz": 2412},
            {"ssid": "broken"},
        ]))
        entries = TermuxWifiProbe().scan_networks()
        assert [(e.access_point_id, e.level) for e in entries] == [
            ("AA:BB:CC:DD:EE:FF", -55), ("AA:BB:CC:DD:EE:FF", -40),
        ]

    def test_api_error_about_location_is_permission_error(self, run):
        run.return_value = completed(json.dumps({"API_ERROR": "Location permission not granted"}))
        with pytest.raises(PermissionDeniedError):
            TermuxWifiProbe().scan_networks()

    def test_other_api_error_is_probe_error(self, run):
        run.return_value = completed(json.dumps({"API_ERROR": "Wifi is disabled"}))
        with pytest.raises(ProbeError) as exc:
            TermuxWifiProbe().scan_networks()
        assert not isinstance(exc.value, PermissionDeniedError)

    def test_invalid_json_is_probe_error(self, run):
        run.return_value = completed("not json")
        with pytest.raises(ProbeError):
            TermuxWifiProbe().scan_networks()


class TestPermissionGates:
    def test_termux_gate_granted(self, run):
        run.return_value = completed(json.dumps({"latitude": 1.0, "longitude": 2.0}))
        assert TermuxPermissionGate().request() is PermissionState.GRANTED

    def test_termux_gate_denied(self, run):
        run.return_value = completed(stderr="Location permission denied", returncode=1)
        assert TermuxPermissionGate().request() is PermissionState.DENIED

    def test_termux_gate_missing_command(self, run):
        run.side_effect = FileNotFoundError()
        assert TermuxPermissionGate().request() is PermissionState.ERROR

    def test_granted_gate(self):
        assert GrantedPermissionGate().request() is PermissionState.GRANTED


class TestPermissionTracker:
    def test_ensure_requests_only_when_needed(self):
        gate = FakeGate(PermissionState.GRANTED)
        tracker = PermissionTracker(gate)
        assert tracker.state is PermissionState.CHECKING
        assert tracker.ensure()
        assert tracker.ensure()
        assert gate.calls == 1

    def test_deny_then_explicit_request(self):
        gate = FakeGate(PermissionState.GRANTED)
        tracker = PermissionTracker(gate)
        tracker.ensure()
        tracker.deny()
        assert not tracker.is_granted
        assert tracker.request()
        assert gate.calls == 2


class TestCreateProbe:
    def test_auto_prefers_termux(self, mocker):
        mocker.patch("wifi_probe.shutil.which", return_value="/usr/bin/termux-wifi-scaninfo")
        probe, gate = create_probe("auto")
        assert isinstance(probe, TermuxWifiProbe)
        assert isinstance(gate, TermuxPermissionGate)

    def test_auto_falls_back_to_linux(self, mocker):
        mocker.patch("wifi_probe.shutil.which", return_value=None)
        probe, gate = create_probe("auto", "wlp2s0")
        assert isinstance(probe, LinuxWifiProbe)
        assert probe.interface == "wlp2s0"
        assert isinstance(gate, GrantedPermissionGate)

    def test_unknown_platform(self):
        with pytest.raises(ValueError):
            create_probe("windows")
