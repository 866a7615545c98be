"""
asgi.py -- ASGI entry point for the JWT auth service.

Settings are read from the environment (and .env) when this module is
imported; a missing or short JWT_SIGN_KEY stops the server here.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app

app = create_app()
