"""Test Helper: scenario-driven database seeding and API mocking for integration tests."""

__version__ = "0.1.0"
