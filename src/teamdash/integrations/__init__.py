"""Outbound integrations for TeamDash."""
