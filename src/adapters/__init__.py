"""Adapters between Telethon and the core digest engine."""
