"""
Vanity Username Application Layer

This package implements the web application layer for the vanity username
service using the aiohttp framework.

Key Components:
- cli.py: Entry point for running the application
- server.py: Web server configuration, middleware setup and startup resources
- config.py: Configuration management using Pydantic settings
- handlers/: Request handlers for the claim page, profile page, well-known
  DID document and health probes
- metrics.py: Metrics abstraction with Telegraf and no-op backends
- notify.py: Best-effort error notification webhook
- util/: Command line utilities for operators

The application uses two middleware layers:
- Metrics middleware for request counts and timings
- Sentry middleware for error reporting

It provides the following main endpoints:
- Claim page (/{domain})
- Profile page (/{domain}/{username})
- Well-known DID document (/.well-known/atproto-did and
  /{domain}/{username}/.well-known/atproto-did)
- Health probes (/internal/alive, /internal/ready)
"""
