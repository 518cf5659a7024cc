"""
History Sync.

Ingests personal-activity exports (git logs, chat transcripts, calendar files,
GitHub activity) and normalizes them into a single canonical event record used
for timeline and heatmap views.
"""

__version__ = "0.1.0"
