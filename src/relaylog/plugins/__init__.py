"""Pluggable pipeline components (currently sinks)."""
