"""Narrative lines, text gauges, the terminal report and the technical log."""
