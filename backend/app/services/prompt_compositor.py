"""
Prompt compositor: renders resolved fragments into one system prompt.

Sections always appear in the order role, style, context, mode. Absent
fragments contribute nothing. Output depends only on the input.
"""
from typing import Mapping, Optional, Tuple

from app.models.component import ComponentKind

SECTION_ORDER: Tuple[ComponentKind, ...] = (
    ComponentKind.ROLE,
    ComponentKind.STYLE,
    ComponentKind.CONTEXT,
    ComponentKind.MODE,
)

SECTION_TITLES = {
    ComponentKind.ROLE: "Role",
    ComponentKind.STYLE: "Style",
    ComponentKind.CONTEXT: "Context",
    ComponentKind.MODE: "Mode",
}

SECTION_SEPARATOR = "\n\n"


def render_section(kind: ComponentKind, content: str) -> str:
    return f"## {SECTION_TITLES[kind]}\n{content}"


def compose_prompt(fragments: Mapping[ComponentKind, Optional[str]]) -> Optional[str]:
    """Compose a system prompt

    Args:
        fragments: fragment content keyed by kind; missing keys, None and
            empty strings all count as absent

    Returns:
        The rendered prompt, or None when no fragment is present (the
        caller's default system prompt applies)
    """
    sections = [
        render_section(kind, fragments[kind])
        for kind in SECTION_ORDER
        if fragments.get(kind)
    ]
    if not sections:
        return None
    return SECTION_SEPARATOR.join(sections)
