"""
auth_service test package

Covers the authentication microservice:

- Registration, login, profile, refresh and logout endpoints (`main.py`)
- JWT issuing, verification and revocation (`auth.py`)
- Request validation and error envelopes (`schemas.py`, `errors.py`)
- Auth event logging (`utils/event_logger.py`)
- Database initialization and health endpoints (`db.py`, `routes/health.py`)
"""
