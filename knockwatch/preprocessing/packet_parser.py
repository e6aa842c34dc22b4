"""Packet normalization / parsing helpers.

Provides `normalize_packet()` to convert backend- or client-specific packet
dictionaries into the canonical packet shape, and `knock_from_packet()` to
reduce a packet to the `(client, port)` observation the detectors consume.
"""
from typing import Any, Dict, Optional, Tuple


def _first(pkt: Dict[str, Any], *keys):
    for k in keys:
        if pkt.get(k) is not None:
            return pkt[k]
    return None


def _to_port(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_packet(pkt: Dict[str, Any]) -> Dict[str, Any]:
    """Return a normalized packet dict with canonical keys.

    Canonical keys: `timestamp`, `src_ip`, `dst_ip`, `protocol`, `dst_port`,
    `flags`. Missing values are left as None.
    """
    out: Dict[str, Any] = {}
    out['timestamp'] = _first(pkt, 'timestamp', 'time', 'ts')
    out['src_ip'] = _first(pkt, 'src_ip', 'src', 'source', 'client')
    out['dst_ip'] = _first(pkt, 'dst_ip', 'dst', 'destination')

    proto = _first(pkt, 'protocol', 'proto')
    if isinstance(proto, bytes):
        proto = proto.decode('utf-8', errors='ignore')
    out['protocol'] = str(proto).upper() if proto else 'TCP'

    out['dst_port'] = _to_port(_first(pkt, 'dst_port', 'dport', 'port'))
    out['flags'] = _first(pkt, 'flags', 'tcp_flags')

    out['_raw'] = pkt
    return out


def is_syn(flags) -> bool:
    """True for a connection attempt: SYN set, ACK clear."""
    flags = str(flags).upper()
    return 'S' in flags and 'A' not in flags


def knock_from_packet(pkt: Dict[str, Any]) -> Optional[Tuple[str, int]]:
    """Extract `(client, port)` from a packet, or None if it is not a knock."""
    protocol = (pkt.get('protocol') or '').upper()
    if protocol != 'TCP':
        return None

    src = pkt.get('src_ip')
    port = _to_port(pkt.get('dst_port'))
    if not src or port is None:
        return None

    flags = pkt.get('flags')
    if flags is not None and not is_syn(flags):
        return None

    return str(src), port
