"""Utility modules for LearnHub API."""

from learnhub.utils.dates import ensure_utc_aware, utc_now
from learnhub.utils.percent import round_percent


__all__ = ["ensure_utc_aware", "round_percent", "utc_now"]
