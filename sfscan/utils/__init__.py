"""Utility modules for sfscan.

Identifiers for staging runs, query text helpers, logging setup and
YAML configuration loading.
"""
