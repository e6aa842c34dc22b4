#!/usr/bin/env python3
"""
Knock client: sends one TCP SYN per port, in order, to a target host.

Usage: sudo python3 -m knockwatch.tools.knock_client 10.0.0.5 7000 8000 9000
"""
import argparse
import random
import sys
import time

from scapy.all import IP, TCP, conf, send

# Configure Scapy
conf.verb = 0


def build_knock(target, port):
    return IP(dst=target) / TCP(
        sport=random.randint(50000, 60000),
        dport=port,
        flags="S",  # SYN
    )


def send_knocks(target, ports, delay=0.3, sender=None):
    """Send the knock sequence; return the number of packets sent."""
    sender = sender or send
    sent = 0
    for i, port in enumerate(ports):
        if i:
            time.sleep(max(0.0, delay))
        sender(build_knock(target, int(port)), verbose=False)
        sent += 1
        print(f"  [{i + 1}/{len(ports)}] knocked on port {port}")
    return sent


def main(argv=None):
    parser = argparse.ArgumentParser(description="Send a port knock sequence")
    parser.add_argument("target", help="Host to knock on")
    parser.add_argument("ports", type=int, nargs="+", help="Ports, in knock order")
    parser.add_argument("--delay", type=float, default=0.3, help="Seconds between knocks")
    args = parser.parse_args(argv)

    print(f"Knocking {args.target}: {' -> '.join(map(str, args.ports))}")
    try:
        send_knocks(args.target, args.ports, delay=args.delay)
    except PermissionError:
        print("ERROR: sending raw packets needs root (sudo)", file=sys.stderr)
        return 1
    print("Done")
    return 0


if __name__ == '__main__':
    sys.exit(main())
