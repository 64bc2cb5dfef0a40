import random

import pytest

from errors import ScanInProgressError
from models import ScanConfig
from net_scanner import CommandFailed, NetworkScanner, SimulatedCommandRunner


def _scanner(platform_name="linux", *, elevated=False, seed=3, **config):
    runner = SimulatedCommandRunner(platform_name, elevated=elevated, rng=random.Random(seed))
    return NetworkScanner(ScanConfig(**config), runner=runner, rng=random.Random(seed))


@pytest.mark.parametrize(
    "platform_name, expected",
    [
        ("windows", ["192.168.1.0/24", "172.16.5.0/24"]),
        ("linux", ["192.168.1.0/24", "172.16.5.0/24"]),
        ("darwin", ["192.168.1.0/24"]),
    ],
)
def test_detect_local_subnets_per_platform(platform_name, expected):
    assert _scanner(platform_name).detect_local_subnets() == expected


def test_unknown_platform_uses_default_subnets():
    scanner = _scanner("plan9")
    assert scanner.detect_local_subnets() == ["192.168.1.0/24", "192.168.0.0/24", "10.0.0.0/24"]
    assert scanner.check_privileges() == "failed"


@pytest.mark.parametrize(
    "platform_name, elevated, expected",
    [
        ("windows", True, "elevated"),
        ("windows", False, "user"),
        ("linux", True, "elevated"),
        ("darwin", False, "user"),
    ],
)
def test_check_privileges(platform_name, elevated, expected):
    assert _scanner(platform_name, elevated=elevated).check_privileges() == expected


def test_parse_arp_output_handles_both_formats():
    windows = _scanner("windows")
    entries = windows.parse_arp_output(SimulatedCommandRunner.ARP_WINDOWS)
    assert [e["ip"] for e in entries] == ["192.168.1.1", "192.168.1.10", "192.168.1.20", "192.168.1.255"]
    assert entries[0]["mac"] == "00-1a-2b-dd-ee-ff"

    unix = _scanner("linux")
    entries = unix.parse_arp_output(SimulatedCommandRunner.ARP_UNIX)
    assert [e["ip"] for e in entries] == ["192.168.1.1", "192.168.1.10", "192.168.1.20"]
    assert all(e["type"] == "dynamic" for e in entries)


def test_arp_scan_classifies_by_vendor_and_filters_subnet():
    devices = _scanner("windows").arp_scan("192.168.1.0/24")
    by_ip = {d.primary_ip: d for d in devices}

    assert by_ip["192.168.1.1"].vendor == "Cisco"
    assert by_ip["192.168.1.1"].type == "router"
    assert by_ip["192.168.1.10"].vendor == "Dell"
    assert by_ip["192.168.1.10"].type == "server"
    assert by_ip["192.168.1.20"].vendor == "Unknown"
    assert by_ip["192.168.1.20"].mac_addresses == ["77:88:99:AA:BB:CC"]
    assert by_ip["192.168.1.1"].id == "device-192-168-1-1"

    assert _scanner("windows").arp_scan("10.0.0.0/24") == []


def test_ping_host_parses_reply():
    scanner = _scanner()
    replies = [scanner.ping_host(f"192.168.1.{i}") for i in range(1, 30)]
    answered = [r for r in replies if r]
    assert answered
    for r in answered:
        assert r["ttl"] in (64, 128, 255)
        assert 1 <= r["latency"] <= 51


def test_ping_sweep_is_repeatable_and_guesses_os():
    first = _scanner(seed=8).ping_sweep("192.168.1.0/28")
    second = _scanner(seed=8).ping_sweep("192.168.1.0/28")

    assert [d.id for d in first] == [d.id for d in second]
    for d in first:
        assert d.os_version in ("Linux/Unix", "Windows", "Network OS")
        assert d.discovery_methods == ["icmp"]


def test_full_scan_as_user_skips_arp_and_maps_connections():
    scanner = _scanner("linux", max_concurrent=16)
    result = scanner.perform_network_scan()

    assert result.success is True
    assert result.privilege_level == "user"
    assert result.is_live_data is True
    assert all("arp" not in d.discovery_methods for d in result.devices)
    assert all(d.hostname.endswith(".local") for d in result.devices)
    ids = {d.id for d in result.devices}
    for c in result.connections:
        assert c.source in ids and c.target in ids
        assert c.id == f"conn-{c.target}-{c.source}"
    assert "arp -a" not in scanner.runner.history


def test_elevated_scan_includes_arp_entries():
    scanner = _scanner("linux", elevated=True, subnets=["192.168.1.0/24"])
    result = scanner.perform_network_scan()

    assert result.privilege_level == "elevated"
    ips = {d.primary_ip for d in result.devices}
    assert {"192.168.1.1", "192.168.1.10", "192.168.1.20"} <= ips
    assert len(ips) == len(result.devices)
    assert "arp -a" in scanner.runner.history


def test_snmp_enrichment_only_touches_infrastructure():
    scanner = _scanner("linux", elevated=True, subnets=["192.168.1.0/24"],
                       protocols={"arp": True, "icmp": False, "dns": False, "snmp": True})
    result = scanner.perform_network_scan()

    for d in result.devices:
        if d.type in ("router", "switch", "firewall"):
            assert d.snmp_info is not None
        else:
            assert d.snmp_info is None


def test_required_elevation_fails_when_privilege_check_fails():
    scanner = _scanner("plan9", require_elevation=True)
    result = scanner.perform_network_scan()

    assert result.success is False
    assert result.errors == ["Insufficient privileges"]
    assert result.privilege_level == "failed"


def test_command_errors_become_failed_results():
    class BrokenRunner(SimulatedCommandRunner):
        def run(self, command, timeout=5):
            if command.startswith("ip route"):
                raise RuntimeError("ip: command not found")
            return super().run(command, timeout)

    scanner = NetworkScanner(ScanConfig(), runner=BrokenRunner("linux", rng=random.Random(1)))
    result = scanner.perform_network_scan()
    assert result.success is False
    assert result.errors == ["ip: command not found"]
    assert scanner.is_scanning is False


def test_invalid_subnet_is_recorded_not_fatal():
    scanner = _scanner("linux", subnets=["bogus", "192.168.1.0/29"])
    result = scanner.perform_network_scan()

    assert result.success is True
    assert result.errors[0].startswith("bogus:")


def test_reentrant_scan_is_rejected():
    class ReentrantRunner(SimulatedCommandRunner):
        scanner = None
        rejected = False

        def run(self, command, timeout=5):
            if command == "whoami" and not self.rejected:
                try:
                    self.scanner.perform_network_scan()
                except ScanInProgressError:
                    type(self).rejected = True
            return super().run(command, timeout)

    runner = ReentrantRunner("linux", rng=random.Random(1))
    scanner = NetworkScanner(ScanConfig(subnets=["192.168.1.0/30"]), runner=runner)
    ReentrantRunner.scanner = scanner
    scanner.perform_network_scan()
    assert ReentrantRunner.rejected is True


def test_net_session_requires_elevation():
    runner = SimulatedCommandRunner("windows", elevated=False)
    with pytest.raises(CommandFailed):
        runner.run("net session")
