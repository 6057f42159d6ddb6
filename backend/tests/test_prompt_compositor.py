"""
Tests for prompt composition
"""
from app.models.component import ComponentKind
from app.services.prompt_compositor import (SECTION_ORDER, compose_prompt,
                                            render_section)


def test_sections_follow_canonical_order():
    fragments = {
        ComponentKind.MODE: "Think step by step.",
        ComponentKind.ROLE: "You are a marketing expert.",
        ComponentKind.CONTEXT: "The product is a CRM.",
        ComponentKind.STYLE: "Be concise.",
    }

    prompt = compose_prompt(fragments)

    assert prompt == (
        "## Role\nYou are a marketing expert.\n\n"
        "## Style\nBe concise.\n\n"
        "## Context\nThe product is a CRM.\n\n"
        "## Mode\nThink step by step."
    )


def test_absent_sections_are_omitted():
    prompt = compose_prompt({
        ComponentKind.ROLE: "You are a marketing expert.",
        ComponentKind.MODE: "Think step by step.",
    })

    assert prompt == "## Role\nYou are a marketing expert.\n\n## Mode\nThink step by step."
    assert "Style" not in prompt
    assert "Context" not in prompt


def test_none_and_empty_count_as_absent():
    prompt = compose_prompt({
        ComponentKind.ROLE: None,
        ComponentKind.STYLE: "",
        ComponentKind.CONTEXT: "Docs only.",
    })
    assert prompt == "## Context\nDocs only."


def test_nothing_present_returns_none():
    assert compose_prompt({}) is None
    assert compose_prompt({kind: None for kind in SECTION_ORDER}) is None


def test_output_is_deterministic():
    fragments = {ComponentKind.STYLE: "Formal.", ComponentKind.ROLE: "Lawyer."}
    reordered = {ComponentKind.ROLE: "Lawyer.", ComponentKind.STYLE: "Formal."}
    assert compose_prompt(fragments) == compose_prompt(reordered) == compose_prompt(fragments)


def test_content_is_not_altered():
    content = "  Line one\n\n  Line two with {braces} and ## hashes  "
    assert render_section(ComponentKind.ROLE, content) == f"## Role\n{content}"
