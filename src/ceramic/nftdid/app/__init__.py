"""
did:nft Driver Application Layer

This package exposes the resolver over HTTP with aiohttp, in the shape of a
universal-resolver driver.

Key Components:
- cli.py: Entry point and logging configuration
- server.py: Application factory and middleware setup
- config.py: Configuration management using Pydantic settings
- handlers/: Request handlers
- metrics.py: Metrics client abstraction

The application uses two middleware layers:
- Metrics middleware for request counts and timings
- Sentry middleware for error reporting

It provides the following endpoints:
- GET /1.0/identifiers/{did}: Resolve a did:nft DID URL
- GET /internal/alive: Liveness probe
"""
