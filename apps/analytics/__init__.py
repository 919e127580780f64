"""Utilization reports and per-date statistics."""
