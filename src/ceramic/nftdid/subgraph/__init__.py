"""
Subgraph Access

Thin transport to TheGraph-style indexers that the resolver reads ownership
and block timestamps from.

Key Components:
- query.py: Renders nested dicts as GraphQL query documents
- client.py: Posts queries over aiohttp and unwraps the ``data`` payload
"""
