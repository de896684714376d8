# Middleware package init
"""
Horoscope Desk Backend: Middleware Package
===========================================

What:  Concerns applied to every request before it reaches a route.

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first, so every later log line can carry it
    2. Logging records method, path, status and duration

    Responses travel the chain in reverse, which is when the X-Request-ID
    header is attached and the access line is written.

Authentication is NOT middleware here: the session gate is a FastAPI
dependency (services/session.py) so each route declares what it needs.
"""
