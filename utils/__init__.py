"""
Tender Portal Monitor - Utilities Package

Shared helpers for logging, configuration, keyword matching, priority
scoring and browser management.
"""

from utils.config import load_config
from utils.keywords import KeywordMatcher
from utils.logging_config import setup_logging
from utils.priority import ThresholdPriorityScorer

__all__ = ["load_config", "KeywordMatcher", "setup_logging", "ThresholdPriorityScorer"]
