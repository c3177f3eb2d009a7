# This project was developed with assistance from AI tools.
"""AI credit scoring with deterministic fallbacks.

Every call goes to the model tier routed for its task in config/models.yaml.
A failed call, a non-JSON reply, or a reply that does not validate falls back
to a baseline value, so pool creation and repayments never block on the
model endpoint.
"""

import json
import logging
import re
from decimal import ROUND_HALF_UP, Decimal

from db.enums import RepaymentStatus, RiskCategory
from pydantic import BaseModel

from ..inference.client import get_completion
from ..inference.config import get_task_tier
from ..schemas.lender import LenderPreferences
from ..schemas.pool import (
    AllocationSuggestion,
    BusinessProfile,
    CreditAssessment,
    FinancialSignals,
    LoanApplication,
)
from .scoring_prompts import (
    build_allocation_prompt,
    build_assessment_prompt,
    build_score_update_prompt,
)

logger = logging.getLogger(__name__)

# Matches ```json ... ``` or ``` ... ``` fences that LLMs often wrap around JSON.
_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

_CENTS = Decimal("0.01")

BASE_CREDIT_SCORE = 70
PAID_SCORE_DELTA = 2
LATE_SCORE_DELTA = -5


def _strip_json_fences(text: str) -> str:
    """Remove markdown code fences from an LLM response.

    Models sometimes wrap JSON in ```json ... ``` even when asked for a
    bare object. This strips the fences so json.loads() succeeds.
    """
    stripped = text.strip()
    m = _FENCE_RE.match(stripped)
    if m:
        return m.group(1).strip()
    return stripped


async def _complete_json(task: str, messages: list[dict]) -> dict:
    raw = await get_completion(messages, tier=get_task_tier(task), json_mode=True)
    data = json.loads(_strip_json_fences(raw))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object from {task}, got {type(data).__name__}")
    return data


def _clamp_score(value: int) -> int:
    return max(0, min(100, int(value)))


def fallback_assessment(loan: LoanApplication) -> CreditAssessment:
    """Baseline assessment used when the model is unavailable."""
    return CreditAssessment(
        score=60,
        default_probability=0.15,
        risk_category=RiskCategory.MEDIUM,
        suggested_interest_rate=Decimal("14.5"),
        eligible_pool_size=(loan.amount * Decimal("0.8")).quantize(_CENTS, ROUND_HALF_UP),
        reasoning="Baseline assessment generated due to AI connectivity timeout.",
    )


def fallback_allocation(preferences: LenderPreferences, loan_amount: Decimal) -> AllocationSuggestion:
    """Standard allocation used when the model is unavailable."""
    suggested = min(preferences.max_ticket_size * Decimal("0.25"), loan_amount * Decimal("0.1"))
    return AllocationSuggestion(
        suggested_amount=suggested.quantize(_CENTS, ROUND_HALF_UP),
        max_lending_capacity=(preferences.annual_revenue * Decimal("0.2")).quantize(
            _CENTS, ROUND_HALF_UP
        ),
        confidence_score=0.5,
        allocation_reason="Standard allocation applied due to AI processing delay.",
    )


def fallback_score(base_score: int, repayments: list[dict]) -> int:
    """Rule-based score update: +2 per on-time payment, -5 per late one."""
    score = base_score
    for repayment in repayments:
        status = repayment.get("status")
        if status == RepaymentStatus.PAID.value:
            score += PAID_SCORE_DELTA
        elif status == RepaymentStatus.LATE.value:
            score += LATE_SCORE_DELTA
    return _clamp_score(score)


async def assess_credit(
    profile: BusinessProfile,
    finance: FinancialSignals,
    loan: LoanApplication,
) -> CreditAssessment:
    """Score a borrower's loan request."""
    messages = build_assessment_prompt(profile, finance, loan)
    try:
        data = await _complete_json("credit_assessment", messages)
        reply = _AssessmentReply.model_validate(data)
        return CreditAssessment.model_validate(
            {**reply.model_dump(), "score": _clamp_score(reply.score)}
        )
    except Exception:
        logger.warning("Credit assessment fell back to baseline for %s", profile.name, exc_info=True)
        return fallback_assessment(loan)


async def suggest_allocation(
    *,
    industry: str,
    assessment: CreditAssessment,
    loan_amount: Decimal,
    remaining: Decimal,
    preferences: LenderPreferences,
) -> AllocationSuggestion:
    """Suggest how much a lender should pledge into a pool.

    The suggested amount is always clamped to [0, max ticket size].
    """
    messages = build_allocation_prompt(
        industry=industry,
        assessment=assessment,
        loan_amount=loan_amount,
        remaining=remaining,
        preferences=preferences,
    )
    try:
        data = await _complete_json("allocation", messages)
        suggestion = _AllocationReply.model_validate(data)
    except Exception:
        logger.warning("Allocation suggestion fell back to standard allocation", exc_info=True)
        return fallback_allocation(preferences, loan_amount)

    amount = max(Decimal("0"), min(suggestion.suggested_amount, preferences.max_ticket_size))
    return AllocationSuggestion(
        suggested_amount=amount.quantize(_CENTS, ROUND_HALF_UP),
        max_lending_capacity=max(Decimal("0"), suggestion.max_lending_capacity),
        confidence_score=max(0.0, min(1.0, suggestion.confidence_score)),
        allocation_reason=suggestion.allocation_reason,
    )


async def recompute_credit_score(base_score: int | None, repayments: list[dict]) -> int:
    """Return the borrower's updated merit score after a repayment.

    ``repayments`` is the borrower's history as plain dicts with at least
    ``status`` and ``amount``. A missing base score starts at 70.
    """
    base = BASE_CREDIT_SCORE if base_score is None else base_score
    messages = build_score_update_prompt(base, repayments)
    try:
        data = await _complete_json("score_update", messages)
        reply = _ScoreReply.model_validate(data)
    except Exception:
        logger.warning("Credit score update fell back to rule-based delta", exc_info=True)
        return fallback_score(base, repayments)

    new_score = reply.new_score if reply.new_score is not None else reply.newScore
    if not new_score:
        return base
    return _clamp_score(new_score)


class _AssessmentReply(BaseModel):
    score: int
    default_probability: float
    risk_category: RiskCategory
    suggested_interest_rate: Decimal
    eligible_pool_size: Decimal
    reasoning: str = ""


class _AllocationReply(BaseModel):
    suggested_amount: Decimal
    max_lending_capacity: Decimal
    confidence_score: float
    allocation_reason: str = ""


class _ScoreReply(BaseModel):
    new_score: int | None = None
    newScore: int | None = None  # noqa: N815
