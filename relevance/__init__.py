"""Search and relevance core: tagging, fuzzy matching, dedup, conflicts, intent, ranking.

Every module here is pure: inputs are in-memory contact snapshots, outputs
are freshly allocated. Persistence and HTTP live in the ``beetagged`` package.
"""
