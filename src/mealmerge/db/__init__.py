"""Persistence layer for records owned by guest and authenticated identities."""
