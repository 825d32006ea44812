"""Backend package: settings, persistence, pipelines and the HTTP API.

Wraps the pure ``relevance`` core with contact ingestion, storage and
search orchestration.
"""
