"""
Redaction of account identifiers and secrets in log output.

A LogRedactor remembers sensitive strings (account and order IDs,
tokens, keys) and replaces them in log messages with stable placeholders such
as "<REDACTED orderId>" or "<REDACTED 0-orderId-2>". Redactors
are passed explicitly to the components that use them; there is no
process-wide registry.

Example:
    redactor = LogRedactor()
    logging.getLogger("src").addFilter(RedactingFilter(redactor))
    client = SchwabClient(oauth, redactor=redactor)
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

BAD_KEY_PATTERNS = ("auth", "acl", "displayname", "id", "key", "token")

WHITELISTED_KEYS = frozenset(
    {
        "requestid",
        "token_type",
        "legid",
        "bidid",
        "askid",
        "lastid",
        "bidsizeinlong",
        "bidsizeindouble",
        "bidpriceindouble",
        "bidprice",
        "bidsize",
        "bidtime",
        "bidmicid",
    }
)

# Minimum length of a response value registered for redaction
MIN_REDACTED_LENGTH = 4


class LogRedactor:
    """Collects sensitive strings and replaces them in messages."""

    def __init__(self) -> None:
        self._redacted: Dict[str, Tuple[str, int]] = {}
        self._label_counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def register(self, value: Any, label: str) -> None:
        """
        Register a value to be redacted under a label.

        Values registered more than once keep their first placeholder.
        When several values share a label, placeholders are numbered.
        """
        text = str(value)
        if not text:
            return

        with self._lock:
            if text in self._redacted:
                return
            count = self._label_counts.get(label, 0) + 1
            self._label_counts[label] = count
            self._redacted[text] = (label, count)

    def redact(self, message: str) -> str:
        """Return message with every registered value replaced."""
        with self._lock:
            entries = sorted(self._redacted.items(), key=lambda item: -len(item[0]))
            counts = dict(self._label_counts)

        for text, (label, count) in entries:
            suffix = f"-{count}" if counts[label] > 1 else ""
            message = message.replace(text, f"<REDACTED {label}{suffix}>")
        return message

    def __len__(self) -> int:
        return len(self._redacted)


class RedactingFilter(logging.Filter):
    """
    Logging filter that redacts registered values from records.

    Attach to a logger or handler. The record's arguments are merged into
    the message before redaction.
    """

    def __init__(self, redactor: LogRedactor, name: str = ""):
        super().__init__(name)
        self.redactor = redactor

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.redactor.redact(record.getMessage())
        record.args = None
        return True


def _is_sensitive(key: str, bad_patterns: Iterable[str], whitelisted: Set[str]) -> bool:
    key = key.lower()
    if key in whitelisted:
        return False
    return any(pattern in key for pattern in bad_patterns)


def _is_redactable(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, float) and not value.is_integer():
        return False
    return len(str(value)) >= MIN_REDACTED_LENGTH


def register_redactions(
    obj: Any,
    redactor: LogRedactor,
    key_path: Optional[List[str]] = None,
    bad_patterns: Iterable[str] = BAD_KEY_PATTERNS,
    whitelisted: Optional[Set[str]] = None,
) -> None:
    """
    Walk a decoded JSON response and register sensitive values.

    A scalar is sensitive when the last key on its path contains one of
    bad_patterns and is not whitelisted. Non-integer floats and values
    shorter than MIN_REDACTED_LENGTH characters are never registered.
    The label is the full key path joined with "-", with list indices as
    path elements.

    Args:
        obj: Decoded JSON (dict, list or scalar)
        redactor: Redactor to register values with
        key_path: Path of obj within the document (used for recursion)
        bad_patterns: Key substrings that mark a value as sensitive
        whitelisted: Lower-cased keys that are never redacted
    """
    if key_path is None:
        key_path = []
    if whitelisted is None:
        whitelisted = WHITELISTED_KEYS

    if isinstance(obj, dict):
        for key, value in obj.items():
            key_path.append(str(key))
            register_redactions(value, redactor, key_path, bad_patterns, whitelisted)
            key_path.pop()
    elif isinstance(obj, list):
        for index, value in enumerate(obj):
            key_path.append(str(index))
            register_redactions(value, redactor, key_path, bad_patterns, whitelisted)
            key_path.pop()
    elif _is_redactable(obj) and key_path:
        if _is_sensitive(key_path[-1], bad_patterns, whitelisted):
            redactor.register(obj, "-".join(key_path))
