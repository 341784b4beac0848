"""
Configuration loading and validation for report location and API settings.

Provides strongly typed settings objects loaded from environment variables
and .env files, with upfront validation.
"""
