"""Filing period date arithmetic.

Periods run for one calendar year and are due a fixed number of calendar months
after they end. All arithmetic goes through :class:`dateutil.relativedelta.relativedelta`
so month lengths and leap years are handled by the calendar, not by day counts.
"""

from __future__ import annotations

import re
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from litestar_ct_filing.core.models import ProposedPeriod
from litestar_ct_filing.exceptions import InvalidDateFormatError

__all__ = ["PeriodCalculator", "normalize_anchor_date"]

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

ONE_DAY = timedelta(days=1)


def normalize_anchor_date(value: date | str) -> date:
    """Convert a customer anchor date to a :class:`~datetime.date`.

    Customer records keep the anchor in either ISO (``yyyy-mm-dd``) or the
    local UI format (``dd/mm/yyyy``).

    Args:
        value: A date, or a string in one of the accepted formats.

    Returns:
        The parsed date.

    Raises:
        InvalidDateFormatError: If the string matches neither format or names
            a day that does not exist.
    """
    if isinstance(value, date):
        return value

    text = value.strip()
    if match := _ISO_DATE.match(text):
        year, month, day = match.groups()
    elif match := _SLASH_DATE.match(text):
        day, month, year = match.groups()
    else:
        raise InvalidDateFormatError(value)

    try:
        return date(int(year), int(month), int(day))
    except ValueError as e:
        raise InvalidDateFormatError(value) from e


class PeriodCalculator:
    """Derives period end and due dates from a period start.

    The calculator is pure: it never reads or writes state, and its results are
    suggestions the caller may edit before creating a period.

    Attributes:
        period_years: Length of a filing period in calendar years.
        due_months: Calendar months between period end and due date.

    Example:
        >>> calculator = PeriodCalculator()
        >>> calculator.compute_next(date(2024, 12, 31))
        ProposedPeriod(period_from=datetime.date(2025, 1, 1), period_to=datetime.date(2025, 12, 31), due_date=datetime.date(2026, 9, 30))
    """

    def __init__(self, period_years: int = 1, due_months: int = 9) -> None:
        """Initialize the calculator.

        Args:
            period_years: Length of a filing period in calendar years.
            due_months: Calendar months between period end and due date.
        """
        self.period_years = period_years
        self.due_months = due_months

    def compute_first(self, customer_anchor: date | str) -> ProposedPeriod:
        """Propose the first period for a customer from their anchor date.

        Args:
            customer_anchor: The customer's configured period start, as a date
                or an ISO / ``dd/mm/yyyy`` string.

        Returns:
            The proposed period starting on the anchor date.
        """
        return self.compute_from(normalize_anchor_date(customer_anchor))

    def compute_next(self, anchor_end: date) -> ProposedPeriod:
        """Propose the period following one that ends on ``anchor_end``.

        Args:
            anchor_end: Last day of the latest existing period.

        Returns:
            The proposed period starting the day after ``anchor_end``.
        """
        return self.compute_from(anchor_end + ONE_DAY)

    def compute_from(self, period_from: date) -> ProposedPeriod:
        """Propose a period starting on ``period_from``.

        Args:
            period_from: First day of the period.

        Returns:
            The proposed period.
        """
        period_to = self.period_end(period_from)
        return ProposedPeriod(
            period_from=period_from,
            period_to=period_to,
            due_date=period_to + relativedelta(months=self.due_months),
        )

    def period_end(self, period_from: date) -> date:
        """Return the last day of a period starting on ``period_from``.

        Args:
            period_from: First day of the period.

        Returns:
            The day before the start date's anniversary.
        """
        anniversary = period_from + relativedelta(years=self.period_years)
        if anniversary.day != period_from.day:
            # Feb 29 start: relativedelta clamped the anniversary to Feb 28,
            # which is already the last day of the period.
            return anniversary
        return anniversary - ONE_DAY
