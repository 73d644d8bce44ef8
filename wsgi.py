"""
WSGI / Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi db upgrade
    flask --app wsgi seed-checklist
    flask --app wsgi create-admin admin@example.com 's3cret-pass'
"""

from onboarding import create_app

app = create_app()
