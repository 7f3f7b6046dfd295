"""
pytest suite for the Laundry Orders API.

Markers:
- unit: pure domain logic (status flow, payment gate, validators, auth helpers)
- integration: services against an in-memory aiosqlite database
- api: HTTP endpoints through the FastAPI app
"""
