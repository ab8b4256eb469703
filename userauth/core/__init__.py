"""Core Business Logic Module

Framework-independent pieces of the service; nothing here imports Flask.

Module Structure:
    - exceptions.py  : Error taxonomy (each error carries its HTTP status)
    - login_flow.py  : OAuth2 authorization-code flow controller
    - oauth.py       : Identity provider client (authlib + requests)
    - sessions.py    : Signed cookie store and typed session payloads
    - telemetry.py   : Tracer bootstrap
    - validators.py  : Input validation for user payloads

Import explicitly when needed:
    from userauth.core.login_flow import OAuthFlow
    from userauth.core.sessions import CookieSessionStore, SessionData
"""
