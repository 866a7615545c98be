"""auth/ -- Token issuance, validation, and request authorization for the JWT auth service.

Layer rule: auth/ imports only stdlib + third-party libraries (plus
core.config for settings types). It does NOT import from api/.
api/ and main.py import from auth/, not the other way around.
"""
