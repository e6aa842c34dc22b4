"""Packet capture backends feeding the ingest worker."""
