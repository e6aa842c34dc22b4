"""Small helpers shared by capture backends.

Every backend hands the ingest worker the same TCP packet shape, the keys
`normalize_packet()` and `knock_from_packet()` read.
"""
from datetime import datetime
from typing import Any, Dict, Optional


def make_tcp_packet(src: str, dst: str, dst_port: int, flags: str,
                    src_port: Optional[int] = None, ip_version: int = 4) -> Dict[str, Any]:
    """Build the canonical packet dict for one captured TCP segment.

    `flags` uses scapy's letter notation ("S", "SA", ...).
    """
    packet = {
        "timestamp": datetime.now().isoformat(),
        "src_ip": src,
        "dst_ip": dst,
        "protocol": "TCP",
        "dst_port": dst_port,
        "flags": flags,
        "_raw": {"ip_version": ip_version},
    }
    if src_port is not None:
        packet["src_port"] = src_port
    return packet
