# Services package init
"""
Horoscope Desk Backend: Services Layer
=======================================

What:  Business rules between the routes (HTTP) and the gateway (SQL).
How:   Each service is a small class with a module-level singleton. Every
       method takes the Gateway as its first argument, so tests can hand
       in a gateway backed by a temporary SQLite file.

Service Inventory:
    - passwords.py:             bcrypt hash / verify (cost 10)
    - session.py:               cookie codec and the session/role gate
    - auth_service.py:          login, change password
    - settings_service.py:      viewer menu allow-list (app_settings)
    - registration_service.py:  profile search / create / edit
    - share_service.py:         record a horoscope share (upsert)
    - follow_up_service.py:     staff reminders
    - lookup_service.py:        who has received a given profile
"""
