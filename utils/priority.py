"""
Tender priority scoring.

The monitor accepts any callable ``Tender -> str`` returning one of
low/medium/high/urgent. ThresholdPriorityScorer is the default and is
configured from the ``priority`` section of config.yaml.
"""

from typing import Any, Callable, Dict, Iterable, Optional

from database.models import PRIORITIES, Tender

PriorityScorer = Callable[[Tender], str]


class ThresholdPriorityScorer:
    """
    Scores a tender by contract value, then by keyword.

    - value above ``urgent_value``: urgent
    - value above ``high_value``: high
    - any tender keyword in ``high_keywords``: high
    - otherwise ``default``
    """

    def __init__(
        self,
        urgent_value: float = 10_000_000,
        high_value: float = 5_000_000,
        high_keywords: Optional[Iterable[str]] = None,
        default: str = "medium",
    ):
        if default not in PRIORITIES:
            raise ValueError(f"Unknown priority '{default}', expected one of {PRIORITIES}")

        self.urgent_value = urgent_value
        self.high_value = high_value
        self.high_keywords = {k.lower() for k in (high_keywords or ("metro", "railway", "kmrl"))}
        self.default = default

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ThresholdPriorityScorer":
        priority_config = config.get("priority", {})
        return cls(
            urgent_value=priority_config.get("urgent_value", 10_000_000),
            high_value=priority_config.get("high_value", 5_000_000),
            high_keywords=priority_config.get("high_keywords"),
            default=priority_config.get("default", "medium"),
        )

    def __call__(self, tender: Tender) -> str:
        value = tender.value or 0
        if value > self.urgent_value:
            return "urgent"
        if value > self.high_value:
            return "high"
        if any(k.lower() in self.high_keywords for k in tender.keywords):
            return "high"
        return self.default
