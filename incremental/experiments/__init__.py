"""Experiment harness: run plans, per-run JSON results and CSV summaries."""
