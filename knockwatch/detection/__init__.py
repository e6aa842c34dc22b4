"""Knock sequence detectors and the engine dispatching their matches."""
