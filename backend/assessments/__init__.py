"""
Assessment modules.

Each assessment module provides a router that is registered with the central
API router under its own prefix.
"""
