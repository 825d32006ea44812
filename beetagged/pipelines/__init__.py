"""Pipelines for contact ingestion, normalization and search.

Each step is callable on its own so that HTTP handlers and batch jobs can
share them.
"""
