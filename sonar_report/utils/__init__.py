"""
Generic utility functions shared across modules.

Includes the user-facing message catalogue.
"""
