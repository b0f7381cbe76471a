"""Observability helpers: request IDs, structlog access logs and an in-memory
metrics snapshot for the probe's own counters.
"""
