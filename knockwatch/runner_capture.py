#!/usr/bin/env python3
"""
Runner: loads the knock configuration, then either sniffs connection
attempts on an interface or serves the HTTP ingest endpoint, executing the
command of every completed knock sequence.
"""
import argparse
import logging
import sys

from knockwatch.utils import config as cfg
from knockwatch.utils import logger as log_cfg

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(prog='knockwatch', description='Port knocking sequence monitor')
    parser.add_argument('--config', default=None, help='Path to config.json (default: project root)')
    parser.add_argument('--interface', default=None, help='Interface to sniff (overrides config)')
    parser.add_argument('--api', action='store_true', help='Serve the HTTP ingest endpoint instead of sniffing')
    parser.add_argument('--host', default='127.0.0.1', help='API bind address')
    parser.add_argument('--port', type=int, default=5000, help='API port')
    parser.add_argument('--json', action='store_true', help='Print findings as JSON lines on stdout')
    parser.add_argument('--log-level', default='INFO', choices=('DEBUG', 'INFO', 'WARNING', 'ERROR'))
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    log_cfg.configure(args.log_level)

    try:
        config = cfg.load(args.config)
    except cfg.ConfigError as e:
        logger.error('Invalid configuration: %s', e)
        return 2

    # Import here so config errors surface before scapy / flask are loaded
    from knockwatch.api.ingest import IngestWorker
    from knockwatch.detection.engine import DetectionEngine

    engine = DetectionEngine(config)
    worker = IngestWorker(engine, maxsize=config.queue_maxsize, emit_json=args.json)

    if args.api:
        from knockwatch.api.app import create_app
        worker.start()
        try:
            create_app(worker).run(host=args.host, port=args.port)
        finally:
            worker.stop()
        return 0

    from knockwatch.capture.live_listener import LiveListener

    interface = args.interface or config.interface
    LiveListener(worker, interface=interface).listen()
    return 0


if __name__ == '__main__':
    sys.exit(main())
