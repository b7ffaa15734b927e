"""Foundation utilities shared by the fixture components.

This package provides shared utilities including:
- HTTP sessions with retry logic for the storage client
- Structured JSON logging
- Bounded polling with tenacity
"""
