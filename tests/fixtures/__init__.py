"""
Pytest fixtures for the FleetHTTP test suite.

- http_mocking: scripted connection pool, verifier double, response builders
"""
