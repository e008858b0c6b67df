"""
core/validation.py -- Declarative per-field validation with collected errors.

A rule set maps each accepted field name to an ordered list of Rule objects:

    rules = {
        "name": [required(), min_length(3)],
        "price": [required(), numeric()],
    }
    errors = validate(payload, rules, lookup)   # {} when the payload is valid

Evaluation semantics:
  - Every field is checked; a failure on one field never hides another.
  - An empty value (absent, None, blank string, empty list/dict) only
    produces the "required" failure. The remaining rules run on present
    values, and every failing rule contributes its own message.
  - A field carrying sometimes() that is absent from the payload is skipped
    entirely. This is how partial updates reuse the create rules.

Messages come from a MessageLookup callable (field, rule_name, params) -> str,
normally Translator.rule_message bound to a rule-set name, so every
(field, rule) pair can carry its own localized text.

validated() returns only the fields named in the rule set. Anything else
in the request body is dropped before it can reach a store.
"""

from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from email_validator import EmailNotValidError, validate_email

from core.errors import ValidationFailed

MessageLookup = Callable[[str, str, dict], str]

# PHP is_numeric() shape: optional sign, digits with optional fraction (or a
# bare fraction), optional exponent, surrounding whitespace allowed.
_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$", re.ASCII)


@dataclass
class Rule:
    """One named check. check(value, payload) returns True when the value passes."""

    name: str
    check: Callable[[Any, Mapping[str, Any]], bool]
    params: dict[str, Any] = field(default_factory=dict)


RuleSet = Mapping[str, Sequence[Rule]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, dict)) and not value:
        return True
    return False


def _size(value: Any) -> int:
    if isinstance(value, (list, dict)):
        return len(value)
    return len(str(value))


def is_numeric(value: Any) -> bool:
    """Return True for values that convert to a finite float. Booleans are not numbers.

    "1e400" matches the numeric shape but overflows to inf, and a very large
    int cannot be converted at all; both are rejected.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        if _NUMERIC_RE.match(value) is None:
            return False
    elif not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except (ValueError, OverflowError):
        return False


# ---------------------------------------------------------------------------
# Rule primitives
# ---------------------------------------------------------------------------


def required() -> Rule:
    return Rule("required", lambda value, data: not _is_empty(value))


def sometimes() -> Rule:
    """Marker: validate the field only when the key is present in the payload."""
    return Rule("sometimes", lambda value, data: True)


def string() -> Rule:
    return Rule("string", lambda value, data: isinstance(value, str))


def min_length(n: int) -> Rule:
    return Rule("min", lambda value, data: _size(value) >= n, {"min": n})


def max_length(n: int) -> Rule:
    return Rule("max", lambda value, data: _size(value) <= n, {"max": n})


def numeric() -> Rule:
    return Rule("numeric", lambda value, data: is_numeric(value))


def email_format() -> Rule:
    def check(value: Any, data: Mapping[str, Any]) -> bool:
        if not isinstance(value, str):
            return False
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return False
        return True

    return Rule("email", check)


def unique(exists: Callable[[Any], bool]) -> Rule:
    """Fail when exists(value) reports a stored record with this value.

    This is a courtesy pre-check that yields a friendly field error. The
    store's UNIQUE constraint remains the authority under concurrency.
    Non-string values pass; their type failure belongs to string() or email().
    """
    return Rule("unique", lambda value, data: not isinstance(value, str) or not exists(value))


def matches(other_field: str) -> Rule:
    """Password-confirmation style check: value must equal payload[other_field]."""
    return Rule("confirmed", lambda value, data: data.get(other_field) == value, {"other": other_field})


def regex(pattern: str | re.Pattern) -> Rule:
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return Rule(
        "regex",
        lambda value, data: isinstance(value, str) and compiled.search(value) is not None,
        {"pattern": compiled.pattern},
    )


def letters(extra: str = "") -> Rule:
    """Unicode letters (category L*), whitespace, and any character in extra.

    Equivalent to a \\p{L} character class, which the re module lacks.
    Reported under the "regex" message key.
    """

    def check(value: Any, data: Mapping[str, Any]) -> bool:
        if not isinstance(value, str) or not value:
            return False
        return all(
            unicodedata.category(ch).startswith("L") or ch.isspace() or ch in extra
            for ch in value
        )

    return Rule("regex", check)


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


def validate(payload: Mapping[str, Any], rules: RuleSet, messages: MessageLookup) -> dict[str, list[str]]:
    """Apply a rule set and return {field: [messages...]} for every violation."""
    errors: dict[str, list[str]] = {}
    for field_name, field_rules in rules.items():
        names = {rule.name for rule in field_rules}
        if "sometimes" in names and field_name not in payload:
            continue

        value = payload.get(field_name)
        failed: list[Rule] = []
        if _is_empty(value):
            failed.extend(rule for rule in field_rules if rule.name == "required")
        else:
            for rule in field_rules:
                if rule.name in ("required", "sometimes"):
                    continue
                if not rule.check(value, payload):
                    failed.append(rule)

        if failed:
            errors[field_name] = [messages(field_name, rule.name, rule.params) for rule in failed]
    return errors


def validated(
    payload: Mapping[str, Any],
    rules: RuleSet,
    messages: MessageLookup,
    failure_message: str = "Validation failed",
) -> dict[str, Any]:
    """Validate and return the allow-listed fields, or raise ValidationFailed."""
    errors = validate(payload, rules, messages)
    if errors:
        raise ValidationFailed(failure_message, errors)
    return {name: payload[name] for name in rules if name in payload}
