# Routes package init
"""
Horoscope Desk Backend: API Routes Package
===========================================

Route Inventory:
    - auth.py:           POST /api/auth/login | logout | change-password
    - settings.py:       GET/PUT /api/settings/viewer-menus
    - registrations.py:  GET/POST /api/registrations, GET/PATCH /api/registrations/{id}
    - shares.py:         POST /api/shares
    - follow_ups.py:     GET/POST /api/follow-ups, PATCH /api/follow-ups/{id}
    - lookup.py:         GET /api/lookup?id=
    - health.py:         GET /health

Routes stay thin: they declare the session/role they need through
dependencies, call one service method, and shape the JSON.
"""
