"""Admissions source loading and row parsing.

This package reads CSV/JSONL sources, parses typed admission rows, and
drives the ingest pipeline that produces warehouse snapshots.
"""
