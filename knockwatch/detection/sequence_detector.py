"""Knock sequence detector: tracks relevant ports touched per client.

Each client accumulates the relevant ports it touches. A rule matches when
the client's accumulated ports end with the rule's full sequence. The window
is anchored to the client's first hit of the current cycle; once it is older
than the configured timeout the client's progress is discarded.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from knockwatch.utils.config import Config, Rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnockMatch:
    client: str
    rule: Rule
    matched_at: int

    @property
    def name(self) -> str:
        return self.rule.name

    @property
    def command(self) -> str:
        return self.rule.command


class SequenceDetector(Protocol):
    """Anything that can record knocks and report completed sequences."""

    def record(self, client: str, port: int) -> Optional[KnockMatch]:
        ...

    def check(self, client: str) -> Optional[KnockMatch]:
        ...


def ends_with(seq: Sequence[int], suffix: Sequence[int]) -> bool:
    n = len(suffix)
    if n > len(seq):
        return False
    return list(seq[len(seq) - n:]) == list(suffix)


class PortSequenceDetector:
    def __init__(self, config: Config, clock: Callable[[], float] = time.time):
        self.timeout = config.timeout
        self.rules: List[Rule] = list(config.rules)
        self.rule_sequences: List[tuple] = [rule.sequence for rule in self.rules]
        self.relevant_ports = frozenset(port for seq in self.rule_sequences for port in seq)
        self._clock = clock
        self.client_sequences: Dict[str, List[int]] = {}
        self.client_started_at: Dict[str, int] = {}

    def _now(self) -> int:
        return int(self._clock())

    def record(self, client: str, port: int) -> Optional[KnockMatch]:
        """Append `port` to the client's sequence and check for a match.

        Ports that no rule uses are ignored without touching any state.
        """
        if port not in self.relevant_ports:
            return None

        logger.info('SYN packet detected from: %s to target port: %s', client, port)

        # read the clock first so a failing clock leaves no partial state
        now = self._now()
        self.client_started_at.setdefault(client, now)
        self.client_sequences.setdefault(client, []).append(port)

        return self._check(client, now)

    def check(self, client: str) -> Optional[KnockMatch]:
        """Consume a completed sequence or expire a stale one.

        Rules are tried in configuration order, so the first rule whose
        sequence is a suffix of the client's knocks wins. On a match both
        the sequence and the start time are reset; the next relevant knock
        opens a fresh window.
        """
        sequence = self.client_sequences.get(client)
        if not sequence:
            return None
        return self._check(client, self._now())

    def _check(self, client: str, now: int) -> Optional[KnockMatch]:
        sequence = self.client_sequences[client]
        for rule in self.rules:
            if ends_with(sequence, rule.sequence):
                logger.info("Matched knock sequence '%s' %s from: %s", rule.name, list(rule.sequence), client)
                sequence.clear()
                self.client_started_at.pop(client, None)
                return KnockMatch(client=client, rule=rule, matched_at=now)

        started = self.client_started_at.get(client)
        if started is not None and now - started > self.timeout:
            logger.info('Sequence timeout for: %s', client)
            sequence.clear()
            del self.client_started_at[client]

        return None

    def prune(self) -> int:
        """Expire stale windows and forget idle clients.

        Returns the number of client entries removed.
        """
        now = self._now()
        removed = 0
        for client in list(self.client_sequences):
            started = self.client_started_at.get(client)
            if started is not None and now - started > self.timeout:
                logger.debug('Pruning expired sequence for: %s', client)
                del self.client_started_at[client]
                started = None
            if started is None:
                del self.client_sequences[client]
                removed += 1
        return removed

    def tracked_clients(self) -> int:
        return len(self.client_sequences)
