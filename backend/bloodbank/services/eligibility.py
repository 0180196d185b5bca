"""Whole-blood donor eligibility rules.

A donor may give whole blood when they are between 18 and 65 years old on
the donation date, weigh at least 50 kg and their previous donation was at
least the configured interval (56 days by default) before.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta


MIN_AGE = 18
MAX_AGE = 65
MIN_WEIGHT_KG = 50.0


@dataclass
class EligibilityResult:
    eligible: bool
    reasons: list[str] = field(default_factory=list)
    next_eligible_date: date | None = None


def age_on(date_of_birth: date, on: date) -> int:
    years = on.year - date_of_birth.year
    if (on.month, on.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def check_eligibility(
    date_of_birth: date,
    weight_kg: float,
    last_donation: date | None,
    on: date,
    interval_days: int = 56,
) -> EligibilityResult:
    reasons: list[str] = []
    next_eligible: date | None = None
    blocked = False

    age = age_on(date_of_birth, on)
    if age < MIN_AGE:
        reasons.append(f"Donor must be at least {MIN_AGE} years old")
        next_eligible = _add_years(date_of_birth, MIN_AGE)
    elif age > MAX_AGE:
        reasons.append(f"Donor must be at most {MAX_AGE} years old")
        blocked = True

    if weight_kg < MIN_WEIGHT_KG:
        reasons.append(f"Donor must weigh at least {MIN_WEIGHT_KG:g} kg")
        blocked = True

    if last_donation is not None:
        interval_end = last_donation + timedelta(days=interval_days)
        if on < interval_end:
            reasons.append(f"At least {interval_days} days are required between donations")
            next_eligible = max(next_eligible or interval_end, interval_end)

    # Age over the limit or low weight cannot be waited out.
    if blocked:
        next_eligible = None

    return EligibilityResult(eligible=not reasons, reasons=reasons, next_eligible_date=next_eligible)


def _add_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February
        return value.replace(year=value.year + years, day=28)
