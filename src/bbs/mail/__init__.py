"""Outgoing mail: login links."""
