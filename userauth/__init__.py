"""userauth - user CRUD and OAuth2 login/session service.

To use the Flask app:
    from userauth.flask_app import create_app

To run under gunicorn:
    gunicorn -c gunicorn.conf.py userauth.wsgi:app
"""
# Note: flask_app is not imported here so the core and repository modules
# stay importable without building an application.
