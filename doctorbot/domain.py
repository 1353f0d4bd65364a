from __future__ import annotations


class PageParseError(ValueError):
    """The doctor info page did not contain a readable appointment state.

    Raised for a missing ``window.__INITIAL_STATE__`` marker, malformed JSON
    or an appointment field that has no DD/MM/YY(YY) date in it.
    """


class FetchError(RuntimeError):
    """All attempts to fetch the appointment date failed.

    The caller must treat this as "unknown", not as "no appointment".
    """
