"""
Services Layer

Business logic for session reservation, round robin scheduling and standings:
- Accept domain inputs (IDs, sessions, player UUIDs)
- Return domain outputs (models, dataclasses) or raise CourtsideError subclasses
- Do NOT depend on HTTP request/response objects
"""
