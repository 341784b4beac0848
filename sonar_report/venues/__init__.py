"""
Adapters for external services.

Holds the SonarQube web API client used to follow up on a submitted analysis.
"""
