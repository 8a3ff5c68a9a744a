"""Core domain package for telegazeta.

Core contains history paging, item assembly, annotation rendering,
deduplication and album grouping without any Telethon-specific code, keeping
the digest engine portable and testable with fakes.
"""
