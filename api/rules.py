"""
api/rules.py -- Rule sets for every mutating endpoint.

Each rule set doubles as the endpoint's allow-list: validated() returns only
the keys named here, so a request body cannot smuggle extra columns into a
store call. The rule-set names ("register", "login", ...) select the message
keys in core/messages.py.
"""

from __future__ import annotations

from auth.store import UserStore
from core.validation import (
    RuleSet,
    email_format,
    letters,
    matches,
    max_length,
    min_length,
    numeric,
    required,
    sometimes,
    string,
    unique,
)

# Letters (any script), whitespace, and hyphens. Digits of every kind, including
# superscripts and roman numerals, are rejected.
NAME_CHARS = letters(extra="-")


def register_rules(user_store: UserStore) -> RuleSet:
    return {
        "name": [required(), string(), NAME_CHARS, max_length(255)],
        "email": [required(), email_format(), unique(user_store.email_exists), max_length(255)],
        "password": [required(), string(), min_length(8), max_length(255), matches("password_confirmation")],
    }


LOGIN_RULES: RuleSet = {
    "email": [required(), email_format()],
    "password": [required(), string()],
}

PRODUCT_CREATE_RULES: RuleSet = {
    "name": [required(), min_length(3)],
    "price": [required(), numeric()],
    "description": [required()],
}

# Same per-field rules as create, but every field may be omitted.
PRODUCT_UPDATE_RULES: RuleSet = {
    name: [sometimes(), *rules] for name, rules in PRODUCT_CREATE_RULES.items()
}
