"""
Ordered fallback lookup over loosely shaped gateway payloads

Gateway payloads carry their fields either inside a ``data`` envelope or at
the top level, in camelCase or snake_case depending on gateway version.
Record fields (transaction id, reference) are read from one object: the
``data`` envelope when it is a non-empty object, otherwise the top level.
Within that object each field is a tuple of candidate key paths tried in
order; the first path that resolves to a non-empty value wins. Supporting a
new payload shape means adding a path to a table, not changing code.
"""

from typing import Any, Optional, Sequence, Tuple

KeyPath = Tuple[str, ...]

ENVELOPE_KEY = "data"

# Read from the selected object (see select_record)
TRANSACTION_ID_PATHS: Sequence[KeyPath] = (
    ("transactionId",),
    ("transaction_id",),
)

REFERENCE_PATHS: Sequence[KeyPath] = (
    ("reference",),
    ("checkoutRequestID",),
)

# Read from the whole payload
EVENT_NAME_PATHS: Sequence[KeyPath] = (
    ("event",),
)

MESSAGE_PATHS: Sequence[KeyPath] = (
    ("message",),
    ("error",),
    ("data", "message"),
)


def select_record(payload: Any) -> Optional[dict]:
    """The ``data`` envelope when it is a non-empty object, else the payload itself"""
    if not isinstance(payload, dict):
        return None
    envelope = payload.get(ENVELOPE_KEY)
    if isinstance(envelope, dict) and envelope:
        return envelope
    return payload


def resolve_path(payload: Any, path: KeyPath) -> Any:
    """Walk ``path`` through nested dicts; None when any step is missing"""
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def lookup_first(payload: Any, paths: Sequence[KeyPath]) -> Optional[str]:
    """
    Return the first non-empty scalar found along ``paths``, as a string.

    Dicts, lists and blank strings are skipped so that, for example, an
    ``error`` object does not shadow a later ``message`` string.
    """
    for path in paths:
        value = resolve_path(payload, path)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def find_transaction_id(payload: Any) -> Optional[str]:
    return lookup_first(select_record(payload), TRANSACTION_ID_PATHS)


def find_reference(payload: Any) -> Optional[str]:
    return lookup_first(select_record(payload), REFERENCE_PATHS)


def find_event_name(payload: Any) -> Optional[str]:
    return lookup_first(payload, EVENT_NAME_PATHS)


def find_message(payload: Any) -> Optional[str]:
    return lookup_first(payload, MESSAGE_PATHS)
