"""Fraud/risk annotation — display-only state derived from upstream scoring.

Nothing in the order core mutates risk fields; the checkout pipeline writes
``fraud_score`` / ``is_flagged`` and raises ``order_fraud_flags`` rows.
"""
from dataclasses import dataclass

from config.settings import settings
from src.sf_common.enums import RiskLevel


@dataclass(frozen=True)
class RiskAnnotation:
    score: float
    flagged: bool
    open_flags: int
    level: RiskLevel

    @property
    def needs_review(self) -> bool:
        return self.flagged or self.open_flags > 0 or self.level == RiskLevel.HIGH


def risk_level(
    score: float,
    flagged: bool,
    medium_score: float | None = None,
    high_score: float | None = None,
) -> RiskLevel:
    medium = settings.RISK_MEDIUM_SCORE if medium_score is None else medium_score
    high = settings.RISK_HIGH_SCORE if high_score is None else high_score
    if flagged or score >= high:
        return RiskLevel.HIGH
    if score >= medium:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def annotate_risk(
    score: float | None, flagged: bool | None, open_flags: int | None = 0
) -> RiskAnnotation:
    """Null-tolerant: legacy rows carry NULL score/flag columns."""
    s = max(float(score or 0), 0.0)
    f = bool(flagged)
    return RiskAnnotation(
        score=s,
        flagged=f,
        open_flags=int(open_flags or 0),
        level=risk_level(s, f),
    )
