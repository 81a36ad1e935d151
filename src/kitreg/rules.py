"""Declarative field rules for kit metadata.

Each top-level field maps to an ordered list of rules. The generic rules
are derived from the kit schema (type, enum, format, maxLength, minItems);
registry-specific refinements for repo, slug, stack and requirements are
added on top. The validator evaluates every rule of every present field the
same way, so adding a check never touches control flow.
"""

import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from kitreg.schema import KitSchema, PropertySchema
from kitreg.validation import Severity

SLUG_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")
SLUG_PATTERN_DISPLAY = "^[a-z0-9]+(-[a-z0-9]+)*$"
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

# A check receives the field name and value and yields one message per problem
Check = Callable[[str, Any], Iterator[str]]

RuleTable = dict[str, list["Rule"]]


@dataclass(frozen=True)
class Rule:
    """A named check and the severity of the messages it yields."""

    name: str
    check: Check
    severity: Severity = Severity.ERROR


def json_type_name(value: Any) -> str:
    """Name the JSON type of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_json_type(value: Any, expected: str) -> bool:
    """Check a decoded value against a JSON Schema type name."""
    actual = json_type_name(value)
    if expected == "integer":
        return actual == "number" and float(value).is_integer()
    return actual == expected


def is_valid_url(value: str) -> bool:
    """Check for an absolute http or https URL with a host."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_repo_url(value: str, hosts: Sequence[str]) -> bool:
    """Check for an https URL whose host contains an accepted hosting domain."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    hostname = parsed.hostname or ""
    return parsed.scheme == "https" and any(host in hostname for host in hosts)


def is_valid_date(value: str) -> bool:
    """Check for a YYYY-MM-DD string naming a real calendar day."""
    if not DATE_PATTERN.fullmatch(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_valid_slug(value: str) -> bool:
    """Check for a lowercase kebab-case slug."""
    return SLUG_PATTERN.fullmatch(value) is not None


def _article(type_name: str) -> str:
    return "an" if type_name[0] in "aeiou" else "a"


def type_rule(expected: str) -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if not matches_json_type(value, expected):
            yield (
                f"Field '{field}' must be {_article(expected)} {expected}, "
                f"got {json_type_name(value)}"
            )

    return Rule("type", check)


def max_length_rule(limit: int) -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if isinstance(value, str) and len(value) > limit:
            yield f"Field '{field}' exceeds max length of {limit}"

    return Rule("maxLength", check)


def enum_rule(allowed: list[Any]) -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if isinstance(value, str) and value not in allowed:
            choices = ", ".join(str(item) for item in allowed)
            yield f"Field '{field}' has invalid value '{value}'. Must be one of: {choices}"

    return Rule("enum", check)


def date_rule() -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if isinstance(value, str) and not is_valid_date(value):
            yield f"Field '{field}' must be in YYYY-MM-DD format, got '{value}'"

    return Rule("format:date", check)


def uri_rule() -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if isinstance(value, str) and not is_valid_url(value):
            yield f"Field '{field}' must be a valid URL, got '{value}'"

    return Rule("format:uri", check)


def repo_host_rule(hosts: Sequence[str]) -> Rule:
    label = "GitHub" if list(hosts) == ["github.com"] else " or ".join(hosts)

    def check(field: str, value: Any) -> Iterator[str]:
        if isinstance(value, str) and not is_valid_repo_url(value, hosts):
            yield f"Field '{field}' must be a valid {label} URL, got '{value}'"

    return Rule("repo-host", check)


def slug_rule() -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if isinstance(value, str) and not is_valid_slug(value):
            yield f"Field '{field}' must match pattern {SLUG_PATTERN_DISPLAY}, got '{value}'"

    return Rule("slug-pattern", check)


def min_items_rule(minimum: int) -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if isinstance(value, list) and len(value) < minimum:
            yield f"Field '{field}' must have at least {minimum} items, got {len(value)}"

    return Rule("minItems", check)


def non_empty_rule() -> Rule:
    # Stricter than minItems: applies to every array field, declared minimum or not.
    def check(field: str, value: Any) -> Iterator[str]:
        if isinstance(value, list) and not value:
            yield f"Field '{field}' cannot be empty"

    return Rule("non-empty", check)


def stack_language_rule() -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if not isinstance(value, dict):
            return
        language = value.get("language")
        if not isinstance(language, list) or not language:
            yield f"{field}.language is required and must be a non-empty array"

    return Rule("stack-language", check)


def requirements_keys_rule(allowed: Sequence[str]) -> Rule:
    def check(field: str, value: Any) -> Iterator[str]:
        if not isinstance(value, dict):
            return
        for key in value:
            if key not in allowed:
                yield f"Unknown requirement '{key}'. Allowed: {', '.join(allowed)}"

    return Rule("requirements-keys", check, Severity.WARNING)


def _schema_rules(prop: PropertySchema) -> list[Rule]:
    rules: list[Rule] = []
    if prop.type is not None:
        rules.append(type_rule(prop.type))
    if prop.max_length is not None:
        rules.append(max_length_rule(prop.max_length))
    if prop.enum is not None:
        rules.append(enum_rule(prop.enum))
    if prop.format == "date":
        rules.append(date_rule())
    elif prop.format == "uri":
        rules.append(uri_rule())
    return rules


def build_rule_table(
    schema: KitSchema,
    repo_hosts: Sequence[str],
    allowed_requirements: Sequence[str],
) -> RuleTable:
    """Build the ordered rule list for every property the schema declares.

    Args:
        schema: Loaded kit schema.
        repo_hosts: Hosting domains accepted in the repo field.
        allowed_requirements: Keys permitted in the requirements object.

    Returns:
        Mapping of field name to its rules, in evaluation order.
    """
    string_refinements: dict[str, list[Rule]] = {
        "repo": [repo_host_rule(repo_hosts)],
        "slug": [slug_rule()],
    }
    object_refinements: dict[str, list[Rule]] = {
        "stack": [stack_language_rule()],
        "requirements": [requirements_keys_rule(allowed_requirements)],
    }

    table: RuleTable = {}
    for name, prop in schema.properties.items():
        rules = _schema_rules(prop)
        rules.extend(string_refinements.get(name, []))
        if prop.min_items is not None:
            rules.append(min_items_rule(prop.min_items))
        rules.append(non_empty_rule())
        if prop.properties is not None:
            rules.extend(object_refinements.get(name, []))
        table[name] = rules
    return table
