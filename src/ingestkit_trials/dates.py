"""Date interpretation engine.

Turns a raw date token (a sheet name such as ``"05.03.24"`` or a metadata
cell) into a :class:`~ingestkit_trials.models.DateInterpretation`.  Trial
dates drive downstream analysis, so the engine never guesses silently:

1. Empty token -- today's date, no candidates, no confirmation.
2. Canonical ``YYYY-MM-DD`` -- one ``ISO`` candidate.
3. Numeric ``A<sep>B<sep>C`` -- a UK reading (day first) and, when it
   denotes a different day, a US reading (month first).  Two readings means
   the caller must confirm.  The UK reading is always the default.
4. Anything else python-dateutil can parse into a complete date (year,
   month and day all taken from the token) -- one ``Auto-detected``
   candidate.  Tokens starting with a four-digit year parse year first.
5. Otherwise -- one ``Fallback (today)`` candidate, confirmation required.

Two-digit years map to 2000-2099 (``2000 + yy``); there is no pivot year.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date, datetime

from dateutil import parser as dateparser

from ingestkit_trials.errors import ErrorCode, IngestError
from ingestkit_trials.models import FALLBACK_FORMAT, DateCandidate, DateInterpretation

logger = logging.getLogger("ingestkit_trials")

ISO_FORMAT = "ISO"
UK_FORMAT = "UK (DD/MM/YYYY)"
US_FORMAT = "US (MM/DD/YYYY)"
AUTO_FORMAT = "Auto-detected"

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_NUMERIC_RE = re.compile(r"^(\d{1,2})([/.\-])(\d{1,2})\2(\d{4}|\d{2})$")
_YEAR_FIRST_RE = re.compile(r"^\d{4}\D")

_SENTINEL_DEFAULTS = (datetime(1, 1, 1), datetime(2, 2, 2))


def render_date(value: date) -> str:
    """Human-readable rendering, e.g. ``"5 March 2024"``."""
    return f"{value.day} {value:%B} {value.year}"


def expand_year(year: int) -> int:
    """Expand a two-digit year into 2000-2099; four-digit years pass through."""
    return 2000 + year if year < 100 else year


def calendar_date(year: int, month: int, day: int) -> date | None:
    """Build a real calendar date, or ``None`` if the parts do not form one.

    The constructed date is read back and compared with the inputs, so an
    impossible day (31 April, 29 February in a common year) is rejected
    rather than rolled over into the next month.
    """
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    try:
        value = date(year, month, day)
    except ValueError:
        return None
    if value.year != year or value.month != month or value.day != day:
        return None
    return value


class DateInterpreter:
    """Interpret raw date tokens.

    Parameters
    ----------
    clock:
        Returns "today".  Used for empty tokens and the fallback reading.
        Defaults to :meth:`datetime.date.today`.
    """

    def __init__(self, clock: Callable[[], date] | None = None) -> None:
        self._clock = clock or date.today

    def interpret(
        self,
        token: str,
        sheet_name: str | None = None,
        diagnostics: list[IngestError] | None = None,
    ) -> DateInterpretation:
        """Produce the canonical date and the candidate readings for *token*."""
        original = token
        text = (token or "").strip()

        # 1. No date at all.
        if not text:
            today = self._clock()
            self._report(
                diagnostics,
                ErrorCode.W_DATE_MISSING,
                "No date found; today's date used.",
                sheet_name,
            )
            return DateInterpretation(
                original=original,
                detected=today.isoformat(),
                options=[],
                needs_confirmation=False,
            )

        # 2. Already canonical.
        if _ISO_RE.match(text):
            iso = self._parse_iso(text)
            if iso is not None:
                return self._single(original, ISO_FORMAT, iso)

        # 3. Numeric day/month ambiguity.
        numeric = self._interpret_numeric(original, text)
        if numeric is not None:
            if numeric.needs_confirmation:
                self._report(
                    diagnostics,
                    ErrorCode.W_DATE_AMBIGUOUS,
                    f"Date '{text}' is ambiguous; defaulting to {numeric.detected} "
                    f"({UK_FORMAT}).",
                    sheet_name,
                )
            return numeric

        # 4. General parsing.
        parsed = self._parse_general(text)
        if parsed is not None:
            return self._single(original, AUTO_FORMAT, parsed)

        # 5. Give up, loudly.
        today = self._clock()
        logger.warning(
            "Could not parse date '%s' (sheet %s); falling back to today.",
            text,
            sheet_name,
        )
        self._report(
            diagnostics,
            ErrorCode.W_DATE_FALLBACK,
            f"Could not parse date '{text}'; today's date substituted.",
            sheet_name,
        )
        return DateInterpretation(
            original=original,
            detected=today.isoformat(),
            options=[
                DateCandidate(
                    format=FALLBACK_FORMAT,
                    date=today.isoformat(),
                    display=render_date(today),
                )
            ],
            needs_confirmation=True,
        )

    # -- internal helpers ----------------------------------------------------

    @staticmethod
    def _parse_iso(text: str) -> date | None:
        year, month, day = (int(p) for p in text.split("-"))
        return calendar_date(year, month, day)

    def _interpret_numeric(self, original: str, text: str) -> DateInterpretation | None:
        match = _NUMERIC_RE.match(text)
        if match is None:
            return None

        first, second = int(match.group(1)), int(match.group(3))
        year = expand_year(int(match.group(4)))

        candidates: list[DateCandidate] = []
        uk = calendar_date(year, second, first)
        if uk is not None:
            candidates.append(_candidate(UK_FORMAT, uk))
        us = calendar_date(year, first, second)
        if us is not None and us != uk:
            candidates.append(_candidate(US_FORMAT, us))

        if not candidates:
            return None

        return DateInterpretation(
            original=original,
            detected=candidates[0].date,
            options=candidates,
            needs_confirmation=len(candidates) > 1,
        )

    @staticmethod
    def _parse_general(text: str) -> date | None:
        # Two different defaults: a field missing from the token shows up as
        # a mismatch, so partial dates never get filled in.
        yearfirst = _YEAR_FIRST_RE.match(text) is not None
        readings = []
        for default in _SENTINEL_DEFAULTS:
            try:
                parsed = dateparser.parse(
                    text,
                    default=default,
                    dayfirst=not yearfirst,
                    yearfirst=yearfirst,
                )
            except (ValueError, OverflowError):
                return None
            readings.append(parsed.date())
        if readings[0] != readings[1]:
            return None
        return readings[0]

    @staticmethod
    def _single(original: str, label: str, value: date) -> DateInterpretation:
        return DateInterpretation(
            original=original,
            detected=value.isoformat(),
            options=[_candidate(label, value)],
            needs_confirmation=False,
        )

    @staticmethod
    def _report(
        diagnostics: list[IngestError] | None,
        code: ErrorCode,
        message: str,
        sheet_name: str | None,
    ) -> None:
        if diagnostics is None:
            return
        diagnostics.append(
            IngestError(
                code=code,
                message=message,
                sheet_name=sheet_name,
                stage="dates",
                recoverable=True,
            )
        )


def _candidate(label: str, value: date) -> DateCandidate:
    return DateCandidate(format=label, date=value.isoformat(), display=render_date(value))
