# Middleware package init
"""
StackIt Backend — Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: reject abusive clients before opening a DB session
    2. Request ID: correlation id for logs and error bodies
    3. Logging: method, path, status and duration, tagged with the request id

    Responses travel the chain in reverse. A 429 is produced before the
    request id exists, so its body carries an empty `request_id`.
"""
