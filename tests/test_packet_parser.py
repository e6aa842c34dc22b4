"""Tests for packet normalization and knock extraction."""

import pytest

from knockwatch.preprocessing.packet_parser import is_syn, knock_from_packet, normalize_packet


def test_normalize_accepts_aliases():
    pkt = normalize_packet({"src": "10.0.0.9", "dst": "10.0.0.1", "dport": "7000", "proto": b"tcp"})
    assert pkt["src_ip"] == "10.0.0.9"
    assert pkt["dst_ip"] == "10.0.0.1"
    assert pkt["dst_port"] == 7000
    assert pkt["protocol"] == "TCP"
    assert pkt["flags"] is None


def test_normalize_defaults_protocol_to_tcp():
    pkt = normalize_packet({"src_ip": "10.0.0.9", "port": 22})
    assert pkt["protocol"] == "TCP"
    assert pkt["dst_port"] == 22
    assert pkt["_raw"] == {"src_ip": "10.0.0.9", "port": 22}


def test_normalize_bad_port_becomes_none():
    assert normalize_packet({"src_ip": "a", "dst_port": "http"})["dst_port"] is None


@pytest.mark.parametrize("flags,expected", [
    ("S", True),
    ("SE", True),
    ("SA", False),
    ("A", False),
    ("", False),
])
def test_is_syn(flags, expected):
    assert is_syn(flags) is expected


def test_knock_from_syn_packet():
    pkt = {"src_ip": "10.0.0.9", "dst_port": 7000, "protocol": "TCP", "flags": "S"}
    assert knock_from_packet(pkt) == ("10.0.0.9", 7000)


def test_knock_without_flags_is_accepted():
    assert knock_from_packet({"src_ip": "10.0.0.9", "dst_port": 1, "protocol": "tcp"}) == ("10.0.0.9", 1)


@pytest.mark.parametrize("pkt", [
    {"src_ip": "10.0.0.9", "dst_port": 7000, "protocol": "UDP"},
    {"src_ip": "10.0.0.9", "dst_port": 7000, "protocol": "TCP", "flags": "SA"},
    {"src_ip": "10.0.0.9", "protocol": "TCP"},
    {"dst_port": 7000, "protocol": "TCP"},
    {"src_ip": "10.0.0.9", "dst_port": None, "protocol": "TCP"},
    {},
])
def test_non_knocks(pkt):
    assert knock_from_packet(pkt) is None
