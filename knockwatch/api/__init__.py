"""Ingest pipeline: queue worker and optional HTTP endpoint."""
