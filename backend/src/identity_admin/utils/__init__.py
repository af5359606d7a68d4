"""Logging and response utilities.

Submodules are imported directly (``identity_admin.utils.logging``) to keep
this package free of import cycles.
"""
