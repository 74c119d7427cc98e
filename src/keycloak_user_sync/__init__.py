"""Keycloak User Sync - forwards Keycloak user lifecycle events to a webhook."""

__version__ = "0.1.0"
