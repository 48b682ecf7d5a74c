"""Requester identity and ownership checks."""
