# Middleware package init
"""
Profilebook Backend — Middleware Package
=========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and every log line written
    while handling the request share one correlation id.
"""
