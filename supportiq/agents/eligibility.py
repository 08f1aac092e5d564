"""
Eligibility Filter - preflight checks before any AI work

Decides whether a ticket may be considered for an automated response.
Checks run in a fixed order and the first failing check wins.
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from supportiq.models.schemas import (
    BusinessHours,
    DeflectionPolicy,
    EligibilityResult,
    Ticket,
    TicketPriority,
)
from supportiq.utils.logger import get_logger

logger = get_logger(__name__)

REASON_DISABLED = "Auto-response disabled"
REASON_OUTSIDE_HOURS = "Outside business hours"
REASON_KEYWORD = "Contains escalation keyword"
REASON_PRIORITY = "High priority ticket - human escalation required"
REASON_PASSED = "All checks passed"


def _clock_minutes(value: str) -> int:
    """Minutes since midnight for an "HH:MM" clock; "24:00" is 1440"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def within_business_hours(hours: BusinessHours, now: Optional[datetime] = None) -> bool:
    """
    Check whether `now` falls inside the business-hours window

    Start is inclusive and end is exclusive. An end at or before the
    start wraps past midnight. The day check uses the local day of `now`.
    A naive `now` is read as UTC.
    Unknown timezones fall back to UTC.

    Args:
        hours: Business-hours window from the policy
        now: Evaluation instant (default: current time)

    Returns:
        True if inside the window (or the window is disabled)
    """
    if not hours.enabled:
        return True

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    try:
        tz = ZoneInfo(hours.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{hours.timezone}', using UTC")
        tz = timezone.utc

    local = now.astimezone(tz)
    if local.weekday() not in hours.days_of_week:
        return False

    start = _clock_minutes(hours.start_time)
    end = _clock_minutes(hours.end_time)
    current = local.hour * 60 + local.minute
    if start < end:
        return start <= current < end
    # Overnight window, e.g. 22:00-06:00
    return current >= start or current < end


def _contains_escalation_keyword(ticket: Ticket, policy: DeflectionPolicy) -> bool:
    haystack = f"{ticket.subject or ''}\n{ticket.content}".lower()
    for keyword in policy.escalation_keywords:
        needle = keyword.strip().lower()
        if needle and needle in haystack:
            return True
    return False


def evaluate(
    ticket: Ticket,
    policy: DeflectionPolicy,
    now: Optional[datetime] = None
) -> EligibilityResult:
    """
    Run preflight checks for one ticket

    Order:
    1. auto-response disabled
    2. outside business hours
    3. excluded category
    4. escalation keyword in subject or content
    5. high-priority sentinel

    Args:
        ticket: Ticket to evaluate
        policy: Account deflection policy
        now: Evaluation instant for the business-hours check

    Returns:
        EligibilityResult with allow flag and human-readable reason
    """
    if not policy.auto_response_enabled:
        return EligibilityResult(allow=False, reason=REASON_DISABLED)

    if not within_business_hours(policy.business_hours, now):
        return EligibilityResult(allow=False, reason=REASON_OUTSIDE_HOURS)

    if ticket.category and ticket.category in policy.excluded_categories:
        return EligibilityResult(
            allow=False,
            reason=f'Category "{ticket.category}" is excluded'
        )

    if _contains_escalation_keyword(ticket, policy):
        return EligibilityResult(allow=False, reason=REASON_KEYWORD)

    if ticket.priority == TicketPriority.PRIORITY:
        return EligibilityResult(allow=False, reason=REASON_PRIORITY)

    return EligibilityResult(allow=True, reason=REASON_PASSED)
