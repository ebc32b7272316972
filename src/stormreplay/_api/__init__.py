"""Fetch pipelines, one module per overlay source.

Internal to stormreplay; the orchestrator is the only caller.
"""
