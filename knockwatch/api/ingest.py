"""Ingestion worker forwarding packets to the detection engine.

`IngestWorker.ingest_packet(packet)` enqueues packets for analysis by a
single background consumer thread, so the detection engine only ever sees
one packet at a time regardless of how many producers feed it.

Detection errors are caught and logged; they do not propagate to the caller.
"""
from __future__ import annotations

import json
import logging
import queue
import threading
import time
from typing import Any, Dict, Optional

from knockwatch.detection.engine import DetectionEngine
from knockwatch.preprocessing.packet_parser import normalize_packet

logger = logging.getLogger(__name__)


class IngestWorker:
    def __init__(self, engine: DetectionEngine, maxsize: int = 5000, emit_json: bool = False,
                 idle_interval: float = 0.5) -> None:
        self.engine = engine
        # bounded queue to avoid unbounded memory growth under load
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.emit_json = emit_json
        self.idle_interval = idle_interval
        self.dropped = 0
        self._closed = False

    def start(self) -> None:
        self._closed = False
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._worker, name='knockwatch-ingest', daemon=True)
        self._thread.start()

    def _worker(self) -> None:
        while not self._stop_event.is_set():
            try:
                pkt = self._queue.get(timeout=self.idle_interval)
            except queue.Empty:
                self._housekeeping()
                continue
            try:
                for f in self.engine.analyze_packet(pkt):
                    if self.emit_json:
                        # JSON lines for external monitors
                        out = {'_type': 'detection', 'timestamp': time.time(), 'finding': f}
                        print(json.dumps(out, default=str), flush=True)
            except Exception as e:
                logger.exception('Error running detection on packet: %s', e)
            finally:
                self._queue.task_done()

    def _housekeeping(self) -> None:
        try:
            self.engine.prune()
        except Exception:
            logger.exception('Failed to prune idle clients')

    def ingest_packet(self, packet: Dict[str, Any]) -> bool:
        """Normalize a packet and enqueue it; return False if it was dropped."""
        if self._closed:
            logger.debug('Ingest worker stopped; ignoring packet')
            return False
        self.start()
        pkt = normalize_packet(packet)
        try:
            self._queue.put(pkt, timeout=0.2)
        except queue.Full:
            # Drop packet if queue is full; do not block caller
            self.dropped += 1
            logger.warning('Ingest queue full; dropping packet from %s', pkt.get('src_ip'))
            return False
        return True

    def join(self) -> None:
        """Block until every queued packet has been analyzed."""
        self._queue.join()

    def stop(self) -> None:
        """Drain the queue, then stop the worker thread.

        Packets arriving after this call are rejected until start() is
        called again.
        """
        self._closed = True
        thread, self._thread = self._thread, None
        if thread is not None and thread.is_alive():
            self._queue.join()
        self._stop_event.set()
        if thread is not None:
            thread.join(timeout=self.idle_interval * 4)
