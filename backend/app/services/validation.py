"""
Validation pipeline shared by the component and preset stores.

A validator is an ordered list of rules. Each rule inspects an immutable
candidate (the state that *would* be persisted) and yields zero or more
field errors. All rules always run, so the caller sees every problem at
once. Validators never raise; they return a ValidationResult.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import (Any, Callable, Iterable, List, Literal, Mapping, Optional,
                    Sequence, Tuple)
from uuid import UUID

from app.core.errors import FieldError, ValidationError
from app.models.component import ComponentKind

NAME_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 5000
DESCRIPTION_MAX_LENGTH = 500
TAG_MAX_COUNT = 20
TAG_MAX_LENGTH = 50

AT_LEAST_ONE_COMPONENT = "at least one component required"
COMPONENT_NOT_FOUND = "component not found"


@dataclass(frozen=True)
class ComponentRef:
    """What cross-entity rules need to know about a referenced component"""
    id: UUID
    owner_id: str
    kind: str


# Resolves a component id, or returns None when it does not resolve
ComponentLookup = Callable[[UUID], Optional[ComponentRef]]


@dataclass(frozen=True)
class ComponentCandidate:
    kind: Any
    name: Any
    content: Any
    description: Any = None
    tags: Any = ()


@dataclass(frozen=True)
class PresetCandidate:
    owner_id: str
    name: Any
    description: Any = None
    slots: Mapping[ComponentKind, Optional[UUID]] = field(default_factory=dict)

    def filled_slots(self) -> List[Tuple[ComponentKind, UUID]]:
        return [(kind, self.slots[kind]) for kind in ComponentKind if self.slots.get(kind)]


@dataclass(frozen=True)
class ValidationResult:
    status: Literal["valid", "invalid"]
    errors: Tuple[FieldError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.status == "valid"

    def raise_for_errors(self) -> None:
        if not self.is_valid:
            raise ValidationError(list(self.errors))


Rule = Callable[[Any], Iterable[FieldError]]


class Validator:
    """Composable, non-short-circuiting rule pipeline"""

    def __init__(self, rules: Sequence[Rule]):
        self.rules = list(rules)

    def validate(self, candidate: Any) -> ValidationResult:
        errors: List[FieldError] = []
        for rule in self.rules:
            errors.extend(rule(candidate))
        if errors:
            return ValidationResult(status="invalid", errors=tuple(errors))
        return ValidationResult(status="valid")

    def __add__(self, other: "Validator") -> "Validator":
        return Validator(self.rules + other.rules)


# ---------------------------------------------------------------------------
# Field-shape rules
# ---------------------------------------------------------------------------

def required_text(attr: str, max_length: int, min_length: int = 1) -> Rule:
    def rule(candidate) -> Iterable[FieldError]:
        value = getattr(candidate, attr)
        if value is None:
            yield FieldError(attr, f"{attr} is required")
        elif not isinstance(value, str):
            yield FieldError(attr, f"{attr} must be a string")
        elif len(value.strip()) < min_length:
            yield FieldError(attr, f"{attr} must be at least {min_length} character(s)")
        elif len(value) > max_length:
            yield FieldError(attr, f"{attr} must be at most {max_length} characters")
    return rule


def optional_text(attr: str, max_length: int) -> Rule:
    def rule(candidate) -> Iterable[FieldError]:
        value = getattr(candidate, attr)
        if value is None:
            return
        if not isinstance(value, str):
            yield FieldError(attr, f"{attr} must be a string")
        elif len(value) > max_length:
            yield FieldError(attr, f"{attr} must be at most {max_length} characters")
    return rule


def kind_is_known(candidate) -> Iterable[FieldError]:
    if ComponentKind.parse(candidate.kind) is None:
        yield FieldError("kind", f"kind must be one of: {', '.join(ComponentKind.values())}")


def tags_within_bounds(candidate) -> Iterable[FieldError]:
    tags = candidate.tags
    if tags is None:
        return
    if isinstance(tags, str) or not isinstance(tags, (list, tuple, set, frozenset)):
        yield FieldError("tags", "tags must be a list of strings")
        return
    if not all(isinstance(tag, str) for tag in tags):
        yield FieldError("tags", "tags must be a list of strings")
        return
    # counted as stored: blanks and duplicates do not count
    if len(normalize_tags(tags)) > TAG_MAX_COUNT:
        yield FieldError("tags", f"at most {TAG_MAX_COUNT} tags are allowed")
    for tag in tags:
        if len(tag.strip()) > TAG_MAX_LENGTH:
            yield FieldError("tags", f"each tag must be at most {TAG_MAX_LENGTH} characters")
            return


# ---------------------------------------------------------------------------
# Cross-entity rules (evaluated on the resulting preset state)
# ---------------------------------------------------------------------------

def at_least_one_slot(candidate: PresetCandidate) -> Iterable[FieldError]:
    if not candidate.filled_slots():
        yield FieldError("slots", AT_LEAST_ONE_COMPONENT)


def slot_references_valid(lookup: ComponentLookup) -> Rule:
    """Each filled slot must point at an existing component of the same owner and kind"""

    def rule(candidate: PresetCandidate) -> Iterable[FieldError]:
        for kind, component_id in candidate.filled_slots():
            field_name = f"slots.{kind.value}"
            ref = lookup(component_id)
            # Foreign components are reported exactly like missing ones
            if ref is None or ref.owner_id != candidate.owner_id:
                yield FieldError(field_name, COMPONENT_NOT_FOUND)
            elif ref.kind != kind.value:
                yield FieldError(
                    field_name,
                    f"component {component_id} is a '{ref.kind}' component, expected '{kind.value}'"
                )
    return rule


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order"""
    if not tags:
        return []
    seen = []
    for tag in tags:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def component_validator() -> Validator:
    return Validator([
        kind_is_known,
        required_text("name", NAME_MAX_LENGTH),
        required_text("content", CONTENT_MAX_LENGTH),
        optional_text("description", DESCRIPTION_MAX_LENGTH),
        tags_within_bounds,
    ])


def preset_validator(lookup: ComponentLookup) -> Validator:
    return Validator([
        required_text("name", NAME_MAX_LENGTH),
        optional_text("description", DESCRIPTION_MAX_LENGTH),
        at_least_one_slot,
        slot_references_valid(lookup),
    ])
