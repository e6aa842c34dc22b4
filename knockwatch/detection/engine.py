"""Detection engine core.

Reduces packet dictionaries to knock observations, feeds them to the
sequence detector and turns matches into findings. Matched rules are handed
to the command executor.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from knockwatch.actions.executor import CommandExecutor
from knockwatch.detection.sequence_detector import KnockMatch, PortSequenceDetector, SequenceDetector
from knockwatch.preprocessing.packet_parser import knock_from_packet
from knockwatch.utils.config import Config

logger = logging.getLogger(__name__)


def make_finding(match: KnockMatch, packet: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    packet = packet or {}
    return {
        'time': datetime.fromtimestamp(match.matched_at).strftime('%Y-%m-%d %H:%M:%S'),
        'type': 'knock_sequence',
        'attack_type': 'port_knock',
        'protocol': 'TCP',
        'src_ip': match.client,
        'dst_ip': packet.get('dst_ip'),
        'dst_port': match.rule.sequence[-1],
        'rule_name': match.name,
        'command': match.command,
        'sequence': list(match.rule.sequence),
        'message': f"Knock sequence '{match.name}' completed by {match.client}",
    }


class DetectionEngine:
    """Serializes access to the sequence detector and dispatches matches."""

    def __init__(self, config: Config, detector: Optional[SequenceDetector] = None,
                 executor: Optional[CommandExecutor] = None) -> None:
        self.config = config
        self.detector = detector if detector is not None else PortSequenceDetector(config)
        self.executor = executor if executor is not None else CommandExecutor(timeout=config.command_timeout)
        # one in-flight detector mutation at a time
        self._lock = threading.Lock()
        logger.debug('DetectionEngine initialized with %d rules', len(config.rules))
        logger.info('Loaded rules: %s', [r.name for r in config.rules])

    def _record(self, client: str, port: int) -> Optional[KnockMatch]:
        with self._lock:
            return self.detector.record(client, port)

    def _detect(self, packet: Dict[str, Any]) -> Optional[KnockMatch]:
        knock = knock_from_packet(packet)
        if knock is None:
            return None
        return self._record(*knock)

    def analyze(self, packet: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Run the detector on one packet and collect findings.

        Matched rules are not executed; see analyze_packet.
        """
        match = self._detect(packet)
        if match is None:
            return []
        return [make_finding(match, packet)]

    def analyze_packet(self, packet: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Analyze a single packet and run the action of any matched rule."""
        match = self._detect(packet)
        if match is None:
            return []
        finding = make_finding(match, packet)
        logger.info('Finding: %s', finding)
        finding['exit_code'] = self.executor.run(match)
        return [finding]

    def observe(self, client: str, port: int) -> List[Dict[str, Any]]:
        """Same as analyze_packet for an already extracted observation."""
        return self.analyze_packet({'src_ip': client, 'dst_port': port, 'protocol': 'TCP'})

    def process_packets(self, packets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        findings: List[Dict[str, Any]] = []
        for packet in packets:
            try:
                findings.extend(self.analyze_packet(packet))
            except Exception as e:
                logger.exception('Failed to process packet %s: %s', packet, e)
        return findings

    def prune(self) -> int:
        prune = getattr(self.detector, 'prune', None)
        if prune is None:
            return 0
        with self._lock:
            removed = prune()
        if removed:
            logger.debug('Pruned %d idle clients', removed)
        return removed
