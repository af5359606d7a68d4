"""Collaborator clients and provisioning helpers."""
