"""
Ingestion Layer for History Sync.

This package turns uploaded export files into canonical events.

Key Components:
- decoding: byte buffer to text
- source_detector: format classification
- parsers: one pure parser per supported format
- normalization: identity and timestamp helpers
- orchestrator: decode, detect, parse and store one upload
- jobs: background execution for large uploads
"""
