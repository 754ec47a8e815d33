"""Ledger configuration, logging, registry and hooks."""
