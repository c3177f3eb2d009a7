# This project was developed with assistance from AI tools.
"""Credit scoring prompt templates.

Keeps prompt construction separate from the scoring service so prompts
can be reviewed and iterated on independently.
"""

import json

from ..schemas.lender import LenderPreferences
from ..schemas.pool import BusinessProfile, CreditAssessment, FinancialSignals, LoanApplication


def _inr(value) -> str:
    return f"₹{value}"


def build_assessment_prompt(
    profile: BusinessProfile,
    finance: FinancialSignals,
    loan: LoanApplication,
) -> list[dict]:
    """Build messages for the borrower credit assessment."""
    system_msg = (
        "Act as an Indian MSME credit underwriter analyzing a request for a "
        "pooling-based loan funded by several lenders. "
        "Respond ONLY with valid JSON matching this schema:\n"
        "{\n"
        '  "score": <integer 0-100, higher is more creditworthy>,\n'
        '  "default_probability": <0.0-1.0>,\n'
        '  "risk_category": "<Low | Medium | High>",\n'
        '  "suggested_interest_rate": <annual percent>,\n'
        '  "eligible_pool_size": <rupees the pool should be allowed to raise>,\n'
        '  "reasoning": "<two or three sentences>"\n'
        "}"
    )
    revenue = ", ".join(_inr(r) for r in finance.six_month_revenue)
    user_msg = (
        f"BUSINESS: {profile.name}, Industry: {profile.industry.value}, "
        f"Years: {profile.years_in_operation}, "
        f"GST: {'Yes' if profile.gst_registered else 'No'}, "
        f"Employees: {profile.employee_count}\n"
        f"REVENUE (Last 6 Months): {revenue}\n"
        f"AVG EXPENSES: {_inr(finance.avg_monthly_expenses)}\n"
        f"LIABILITIES: {_inr(finance.outstanding_liabilities)}\n"
        f"EXISTING LOANS: {'Yes' if finance.existing_loans else 'No'}\n"
        f"INVOICE VOL: {finance.invoice_volume}/mo, "
        f"PAYMENT DELAY: {finance.avg_payment_delay} days\n"
        f"REQUESTED LOAN: {_inr(loan.amount)} for {loan.purpose.value} "
        f"over {loan.tenure} months, acceptable interest "
        f"{loan.interest_range[0]}-{loan.interest_range[1]}%."
    )
    return [
        {"role": "system", "content": system_msg},
        {"role": "user", "content": user_msg},
    ]


def build_allocation_prompt(
    *,
    industry: str,
    assessment: CreditAssessment,
    loan_amount,
    remaining,
    preferences: LenderPreferences,
) -> list[dict]:
    """Build messages for a lender allocation suggestion."""
    system_msg = (
        "Act as an AI portfolio allocator for a pooled lending platform. "
        "Calculate exactly how much this lender should invest in the pool, "
        "between 0 and their max ticket size, respecting their risk appetite "
        "(a Conservative lender invests less in High risk pools). Also compute "
        "their max lending capacity as roughly 20% of their annual revenue. "
        "Respond ONLY with valid JSON matching this schema:\n"
        "{\n"
        '  "suggested_amount": <rupees>,\n'
        '  "max_lending_capacity": <rupees>,\n'
        '  "confidence_score": <0.0-1.0>,\n'
        '  "allocation_reason": "<match between lender strategy and borrower cash flow>"\n'
        "}"
    )
    industries = ", ".join(i.value for i in preferences.preferred_industries) or "Any"
    user_msg = (
        "LENDER STRATEGY:\n"
        f"- Max Ticket: {_inr(preferences.max_ticket_size)}\n"
        f"- Risk Appetite: {preferences.risk_appetite.value}\n"
        f"- Preferred Industries: {industries}\n"
        f"- Annual Revenue: {_inr(preferences.annual_revenue)}\n\n"
        "BORROWER POOL:\n"
        f"- Industry: {industry}\n"
        f"- Risk Category: {assessment.risk_category.value}\n"
        f"- Merit Score: {assessment.score}/100\n"
        f"- Target Yield: {assessment.suggested_interest_rate}%\n"
        f"- Total Loan Needed: {_inr(loan_amount)}\n"
        f"- Still Unfunded: {_inr(remaining)}"
    )
    return [
        {"role": "system", "content": system_msg},
        {"role": "user", "content": user_msg},
    ]


def build_score_update_prompt(base_score: int, repayments: list[dict]) -> list[dict]:
    """Build messages for a repayment-driven credit score update."""
    system_msg = (
        "Act as an AI credit scoring engine. Given a base merit score on a "
        "0-100 scale and the borrower's repayment history, compute an updated "
        "score on the same scale. Reward on-time payments and penalize late ones. "
        'Respond ONLY with valid JSON: {"new_score": <integer 0-100>}'
    )
    user_msg = (
        f"BASE MERIT SCORE: {base_score}\n"
        f"REPAYMENT HISTORY: {json.dumps(repayments, default=str)}"
    )
    return [
        {"role": "system", "content": system_msg},
        {"role": "user", "content": user_msg},
    ]
