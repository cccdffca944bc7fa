"""
user_service package tests

Covers the backend logic of the user service:

- Registration orchestration and its failure policy (`registration.py`)
- Profile read path (`profiles.py`)
- Keycloak admin client (`identity_provider.py`)
- Access token verification (`auth.py`)
- FastAPI routes and error envelope (`main.py`, `routes/`)
- Schema creation (`db.py`, `models.py`)
"""
