"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class CollectorConfig:
    """Settings for one collection run."""

    window: timedelta
    cache_dir: str
    embed_thumbnails: bool = True
