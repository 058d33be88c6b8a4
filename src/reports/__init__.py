"""Analytical reporting layer.

This module answers fixed business questions over a normalized star
schema. Each report is a pure function returning a tabular result.
"""
