# Middleware package init
"""
Blogging API — Middleware Package
===================================

Cross-cutting concerns applied to every request.

Middleware Chain (request direction):
    [Rate Limit] → [Request ID] → [Logging] → [Security Headers] → [GZip] → [CORS] → Route

    1. Rate Limit first: reject abusive clients before any work
    2. Request ID: correlation ID for every later log line
    3. Logging: status and duration, tagged with the request ID
    4. Security headers, compression and CORS wrap the route's response
"""
