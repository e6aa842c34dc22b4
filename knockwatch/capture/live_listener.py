import logging
import threading
import time

from knockwatch.api.ingest import IngestWorker
from knockwatch.capture.scapy_capture import ScapyCapture

logger = logging.getLogger(__name__)


class LiveListener:
    """
    Captures connection attempts in real time and feeds them to the ingest
    worker. Capture runs in its own thread; detection happens on the worker's
    single consumer thread.
    """

    def __init__(self, worker: IngestWorker, interface=None, capture=None):
        """
        :param worker: ingest worker receiving every captured packet
        :param interface: network interface to listen on (e.g. 'eth0')
        :param capture: capture backend, defaults to ScapyCapture
        """
        self.interface = interface
        self.worker = worker
        self.capture = capture if capture is not None else ScapyCapture(interface)
        self.is_running = False
        self._thread = None

    def listen(self):
        """Start the capture and block until stopped or interrupted."""
        logger.info('Starting capture on interface %s', self.interface or '<default>')
        self.is_running = True
        self.worker.start()

        try:
            self._thread = threading.Thread(target=self._capture_thread, name='knockwatch-capture', daemon=True)
            self._thread.start()

            while self.is_running:
                time.sleep(0.1)

        except KeyboardInterrupt:
            logger.info('Capture stopped by user')
        finally:
            self.stop()
            logger.info('Capture ended')

    def _capture_thread(self):
        try:
            self.capture.start(self.worker.ingest_packet)
        except Exception as e:
            logger.exception('Capture thread error: %s', e)
        finally:
            self.is_running = False

    def stop(self):
        self.is_running = False
        self.capture.stop()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self.worker.stop()
