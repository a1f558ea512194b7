"""
Temporal validity of registry rows.

Every vocabulary, version, access point and version artefact row carries
a ``start_date`` / ``end_date`` pair. Three sentinel dates, far in the
future, encode the states a row can be in:

    currently valid   start <= now,              end = CURRENTLY_VALID_END_DATE
    historical        start <= end <= now
    draft             start = DRAFT_START_DATE,  end = DRAFT_END_DATE

Draft rows sort after every real date, so ``start_date > CURRENTLY_VALID_END_DATE``
identifies them.

Tags:
    temporal, validity, drafts, vocabreg

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import datetime
from typing import Any, Protocol

CURRENTLY_VALID_END_DATE = datetime.datetime(9999, 12, 1)
DRAFT_START_DATE = datetime.datetime(9999, 12, 2)
DRAFT_END_DATE = datetime.datetime(9999, 12, 3)


class TemporalRow(Protocol):
    start_date: datetime.datetime
    end_date: datetime.datetime
    modified_by: str | None


def utcnow() -> datetime.datetime:
    """Current UTC time, naive, as stored in the database."""
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


def make_currently_valid(row: TemporalRow, now: datetime.datetime) -> Any:
    row.start_date = now
    row.end_date = CURRENTLY_VALID_END_DATE
    return row


def make_historical(row: TemporalRow, now: datetime.datetime) -> Any:
    """Close off a row as of *now*; a draft row keeps *now* as its start."""
    if is_draft(row):
        row.start_date = now
    row.end_date = now
    return row


def make_draft(row: TemporalRow) -> Any:
    row.start_date = DRAFT_START_DATE
    row.end_date = DRAFT_END_DATE
    return row


def is_draft(row: TemporalRow) -> bool:
    return row.start_date is not None and row.start_date > CURRENTLY_VALID_END_DATE


def is_currently_valid(row: TemporalRow) -> bool:
    return row.end_date == CURRENTLY_VALID_END_DATE and not is_draft(row)
