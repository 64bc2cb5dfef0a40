import random

import pytest

from models import NetworkDevice, ServiceInfo
from net_utils import (
    guess_device_type,
    guess_os_from_ttl,
    guess_type_from_ip,
    is_private_ip,
    lookup_mac_vendor,
    mask_to_cidr,
    nearest_infrastructure,
)
from toolkit.utils import ensure_private_target


def test_private_ranges():
    assert is_private_ip("10.4.5.6")
    assert is_private_ip("172.31.0.1")
    assert not is_private_ip("172.32.0.1")
    assert not is_private_ip("127.0.0.1")
    assert not is_private_ip("garbage")


def test_mask_to_cidr():
    assert mask_to_cidr("192.168.1.100", "255.255.255.0") == "192.168.1.0/24"
    assert mask_to_cidr("10.1.2.3", "0xffff0000") == "10.1.0.0/16"
    assert mask_to_cidr("10.1.2.3", "nonsense") is None


def test_vendor_lookup_accepts_any_separator():
    assert lookup_mac_vendor("00-1a-2b-00-00-01") == "Cisco"
    assert lookup_mac_vendor("00:14:22:aa:bb:cc") == "Dell"
    assert lookup_mac_vendor("de:ad:be:ef:00:01") == ""
    assert lookup_mac_vendor("unknown") == ""


def test_type_and_os_guesses():
    assert guess_type_from_ip("10.0.0.1") == "router"
    assert guess_type_from_ip("10.0.0.30") == "server"
    assert guess_type_from_ip("10.0.0.200") == "workstation"
    assert guess_os_from_ttl(64) == "Linux/Unix"
    assert guess_os_from_ttl(128) == "Windows"
    assert guess_os_from_ttl(255) == "Network OS"

    assert guess_device_type([ServiceInfo(port=22, service="ssh")]) == "server"
    assert guess_device_type([]) == "workstation"
    snmp = [ServiceInfo(port=161, protocol="udp", service="snmp")]
    assert guess_device_type(snmp, random.Random(0)) in ("switch", "router", "firewall")


def test_nearest_infrastructure_prefers_same_subnet():
    devices = [
        NetworkDevice(id="r1", hostname="r1", type="router", ip_addresses=["10.0.1.1"]),
        NetworkDevice(id="s2", hostname="s2", type="switch", ip_addresses=["10.0.2.2"]),
        NetworkDevice(id="h", hostname="h", type="workstation", ip_addresses=["10.0.2.50"]),
    ]
    assert nearest_infrastructure(devices[2], devices).id == "s2"
    assert nearest_infrastructure(devices[2], devices[2:]) is None


@pytest.mark.parametrize("target", ["192.168.0.0/16", "10.0.0.5", "127.0.0.1"])
def test_private_targets_allowed(target):
    ensure_private_target(target)


@pytest.mark.parametrize("target", ["8.8.8.8", "1.0.0.0/8", "", "example.com"])
def test_public_targets_refused(target):
    with pytest.raises(ValueError):
        ensure_private_target(target)
