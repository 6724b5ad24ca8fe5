"""TDS rate resolution and withheld-amount computation.

Rates are picked from a priority-ordered rule chain; the first rule that
yields a rate wins:

1. Manual override entered on the transaction
2. Counterparty lower-deduction certificate valid on the transaction date
3. Section master rate by PAN status
4. Section master rate by entity type (individual, then company)

No match means no withholding, represented as an absent rate rather than 0%.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from tourbooks.core.amounts import HUNDRED, ZERO, parse_date, round_currency
from tourbooks.core.models import (
    TdsContext,
    TdsResult,
    TdsRule,
    TdsSection,
    TdsTransactionType,
)

logger = logging.getLogger(__name__)

RuleFunction = Callable[[TdsContext], Optional[Tuple[Decimal, TdsRule]]]


def manual_override(ctx: TdsContext) -> Optional[Tuple[Decimal, TdsRule]]:
    if ctx.override_rate is not None:
        return ctx.override_rate, TdsRule.MANUAL_OVERRIDE
    return None


def lower_deduction_certificate(ctx: TdsContext) -> Optional[Tuple[Decimal, TdsRule]]:
    certificate = ctx.counterparty.lower_deduction
    if certificate is not None and certificate.covers(ctx.effective_date):
        return certificate.rate, TdsRule.LOWER_DEDUCTION_CERTIFICATE
    return None


def section_rate_by_pan(ctx: TdsContext) -> Optional[Tuple[Decimal, TdsRule]]:
    section = ctx.section
    if section is None:
        return None
    if ctx.counterparty.has_pan:
        if section.rate_with_pan is not None:
            return section.rate_with_pan, TdsRule.SECTION_RATE_WITH_PAN
    elif section.rate_without_pan is not None:
        return section.rate_without_pan, TdsRule.SECTION_RATE_WITHOUT_PAN
    return None


def section_rate_by_entity(ctx: TdsContext) -> Optional[Tuple[Decimal, TdsRule]]:
    section = ctx.section
    if section is None:
        return None
    if section.rate_individual is not None:
        return section.rate_individual, TdsRule.SECTION_RATE_INDIVIDUAL
    if section.rate_company is not None:
        return section.rate_company, TdsRule.SECTION_RATE_COMPANY
    return None


RATE_RULES: List[RuleFunction] = [
    manual_override,
    lower_deduction_certificate,
    section_rate_by_pan,
    section_rate_by_entity,
]


def resolve_rate(
    ctx: TdsContext,
    rules: Optional[Iterable[RuleFunction]] = None,
) -> Tuple[Optional[Decimal], Optional[TdsRule]]:
    """
    Walk the rule chain and return the first (rate, rule) that matches.

    Returns:
        (None, None) when no rule yields a rate
    """
    for rule in rules if rules is not None else RATE_RULES:
        match = rule(ctx)
        if match is not None:
            rate, source = match
            logger.debug("TDS rate %s%% from %s", rate, source.value)
            return rate, source
    logger.debug("No TDS rule matched for %s on %s", ctx.transaction_type.value, ctx.effective_date)
    return None, None


def gst_component(ctx: TdsContext) -> Decimal:
    """
    GST portion of the gross amount.

    Uses the explicit GST amount when given, otherwise derives it from an
    inclusive GST rate: gross * rate / (100 + rate).
    """
    if ctx.gst_amount is not None:
        return ctx.gst_amount
    if ctx.gst_rate is not None:
        return ctx.gross_amount * ctx.gst_rate / (HUNDRED + ctx.gst_rate)
    return ZERO


def base_amount(ctx: TdsContext) -> Decimal:
    """Amount TDS is computed on; never negative."""
    if ctx.gross_amount <= ZERO:
        return ZERO
    if ctx.transaction_type is TdsTransactionType.GST:
        return max(ctx.gross_amount - gst_component(ctx), ZERO)
    return ctx.gross_amount


def resolve_tds(ctx: TdsContext) -> TdsResult:
    """
    Resolve the applicable TDS rate and compute the withheld amount.

    Args:
        ctx: Payment or receipt context

    Returns:
        TdsResult; applied_rate and tds_amount are None when no rule matched
    """
    base = base_amount(ctx)
    rate, rule = resolve_rate(ctx)

    if rate is None:
        return TdsResult(base_amount=base)

    tds_amount = round_currency(base * rate / HUNDRED)
    return TdsResult(base_amount=base, applied_rate=rate, tds_amount=tds_amount, rule=rule)


def select_section(sections: Iterable[TdsSection], on_date) -> Optional[TdsSection]:
    """
    Pick the section master effective on a date.

    When several versions of a section are effective, the one with the latest
    effective_from wins.

    Raises:
        InvalidDateError: If on_date cannot be parsed
    """
    on_date = parse_date(on_date, "on_date")
    effective = [s for s in sections if s.is_effective_on(on_date)]
    if not effective:
        return None
    return max(effective, key=lambda s: s.effective_from or date.min)
