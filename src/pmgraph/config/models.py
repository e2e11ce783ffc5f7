"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, pmgraph.toml only contains
overrides. A fresh workspace needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel


class StorageConfig(BaseModel):
    """[storage] section."""

    model_config = {"frozen": True}

    path: str = "memory.json"
    indent: int = 2


class AnalyticsConfig(BaseModel):
    """[analytics] section."""

    model_config = {"frozen": True}

    dependency_depth: int = 2
    related_depth: int = 1
    upcoming_window_days: int = 7
    high_risk_threshold: int = 15
    schedule_slack: int = 15
