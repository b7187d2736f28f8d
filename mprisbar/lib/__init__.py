"""Shared building blocks for the mprisbar service (sessions, display, config)."""
