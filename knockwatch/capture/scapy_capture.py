import time
from typing import Optional

from scapy.all import AsyncSniffer, IP, IPv6, TCP

from knockwatch.capture.helpers import make_tcp_packet

# BPF tcpflags only works for IPv4; IPv6 SYNs are filtered after conversion
SYN_FILTER = "(tcp[tcpflags] & (tcp-syn|tcp-ack) == tcp-syn) or (ip6 and tcp)"


class ScapyCapture:
    def __init__(self, interface: Optional[str] = None, bpf_filter: Optional[str] = SYN_FILTER):
        self.interface = interface
        # Handle loopback interface - use None filter to capture all
        if interface and interface.lower() in ['lo', 'lo0', 'localhost']:
            self.bpf_filter = None
        else:
            self.bpf_filter = bpf_filter if bpf_filter else None
        self._sniffer: Optional[AsyncSniffer] = None
        self._running = False

    def _convert(self, pkt):
        if not pkt.haslayer(TCP):
            return None

        if pkt.haslayer(IP):
            src, dst = pkt[IP].src, pkt[IP].dst
            version = 4
        elif pkt.haslayer(IPv6):
            src, dst = pkt[IPv6].src, pkt[IPv6].dst
            version = 6
        else:
            return None

        tcp_layer = pkt[TCP]
        return make_tcp_packet(
            src=src,
            dst=dst,
            dst_port=tcp_layer.dport,
            flags=str(tcp_layer.flags),
            src_port=tcp_layer.sport,
            ip_version=version,
        )

    def start(self, callback):
        """Start capturing; this blocks until `stop()` is called."""
        def handler(pkt):
            parsed = self._convert(pkt)
            if parsed:
                callback(parsed)

        self._running = True
        self._sniffer = AsyncSniffer(iface=self.interface, filter=self.bpf_filter, prn=handler, store=False)
        self._sniffer.start()

        # keep running until stop() is called
        try:
            while self._running:
                time.sleep(0.2)
        finally:
            self._stop_sniffer()

    def _stop_sniffer(self):
        sniffer, self._sniffer = self._sniffer, None
        if sniffer is not None and sniffer.running:
            sniffer.stop()

    def stop(self):
        self._running = False
