# backend/mailbulk/services/flatten.py
"""
Flatten one stored verification document into a fixed-width CSV record.

The document is schema-flexible: every section and every field may be
missing, and unknown keys are ignored. Recognised keys are type-checked, and
one bad field rejects the whole document.
"""
import json
from collections import namedtuple
from dataclasses import dataclass, astuple
from typing import Any, List, Mapping, Optional

from ..errors import MalformedDocument, TypeMismatch

TOP_LEVEL = None

# Sections holding nested fields, in traversal order.
SECTIONS = ("misc", "mx", "smtp", "syntax")

FieldRule = namedtuple("FieldRule", ["section", "key", "kind", "slot"])

FIELD_RULES = (
    FieldRule(TOP_LEVEL, "input", str, "input"),
    FieldRule(TOP_LEVEL, "is_reachable", str, "is_reachable"),
    FieldRule("misc", "is_disposable", bool, "misc_is_disposable"),
    FieldRule("misc", "is_role_account", bool, "misc_is_role_account"),
    FieldRule("mx", "accepts_email", bool, "mx_accepts_mail"),
    FieldRule("smtp", "can_connect_smtp", bool, "smtp_can_connect"),
    FieldRule("smtp", "has_full_inbox", bool, "smtp_has_full_inbox"),
    FieldRule("smtp", "is_catch_all", bool, "smtp_is_catch_all"),
    FieldRule("smtp", "is_deliverable", bool, "smtp_is_deliverable"),
    FieldRule("smtp", "is_disabled", bool, "smtp_is_disabled"),
    FieldRule("syntax", "is_valid_syntax", bool, "syntax_is_valid_syntax"),
    FieldRule("syntax", "username", str, "syntax_username"),
    FieldRule("syntax", "domain", str, "syntax_domain"),
)

_KIND_NAMES = {str: "a string", bool: "a boolean"}


@dataclass(frozen=True)
class FlatResultRecord:
    # field order == CSV column order
    input: str = ""
    is_reachable: str = ""
    misc_is_disposable: bool = False
    misc_is_role_account: bool = False
    mx_accepts_mail: bool = False
    smtp_can_connect: bool = False
    smtp_has_full_inbox: bool = False
    smtp_is_catch_all: bool = False
    smtp_is_deliverable: bool = False
    smtp_is_disabled: bool = False
    syntax_is_valid_syntax: bool = False
    syntax_domain: str = ""
    syntax_username: str = ""
    error: Optional[str] = None

    def as_row(self) -> List[str]:
        return [_render_cell(v) for v in astuple(self)]


CSV_HEADER = [
    "input",
    "is_reachable",
    "misc.is_disposable",
    "misc.is_role_account",
    "mx.accepts_mail",
    "smtp.can_connect",
    "smtp.has_full_inbox",
    "smtp.is_catch_all",
    "smtp.is_deliverable",
    "smtp.is_disabled",
    "syntax.is_valid_syntax",
    "syntax.domain",
    "syntax.username",
    "error",
]


def _render_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _render_error(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def _field_name(rule: FieldRule) -> str:
    if rule.section is TOP_LEVEL:
        return rule.key
    return f"{rule.section}.{rule.key}"


def flatten(doc: Any) -> FlatResultRecord:
    """
    Convert a verification document into a :class:`FlatResultRecord`.

    Raises :class:`MalformedDocument` if ``doc`` is not a mapping, and
    :class:`TypeMismatch` for the first recognised field (or section) that
    has the wrong type.

    Only one error survives per row. Each section's ``error`` overwrites the
    previous one, so the result depends on the traversal order
    misc -> mx -> smtp -> syntax. This is not a priority policy.
    """
    if not isinstance(doc, Mapping):
        raise MalformedDocument()

    values = {}
    error = None

    for section in (TOP_LEVEL,) + SECTIONS:
        if section is TOP_LEVEL:
            source = doc
        else:
            if section not in doc:
                continue
            source = doc[section]
            if not isinstance(source, Mapping):
                raise TypeMismatch(section, "an object")

        for rule in FIELD_RULES:
            if rule.section != section or rule.key not in source:
                continue
            value = source[rule.key]
            if not isinstance(value, rule.kind):
                raise TypeMismatch(_field_name(rule), _KIND_NAMES[rule.kind])
            values[rule.slot] = value

        if section is not TOP_LEVEL:
            section_error = _render_error(source.get("error"))
            if section_error is not None:
                error = section_error

    return FlatResultRecord(error=error, **values)
