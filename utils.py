# utils.py
"""
Shared utility functions for the advice pipeline.
Rendering of parsed sections, reference formatting and JSON payload validation.
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

from jsonschema import Draft202012Validator

from config import DEFAULTS, PromptConfig
from models import AdviceSection, AdviceStatement, Reference


# ==========================
# Reference Formatting
# ==========================

def render_reference_markdown(ref: Reference) -> str:
    """Render a reference in the "[N][text](url)" form the parser reads."""
    return f"[{ref.number}][{ref.link_text}]({ref.url or ''})"


def format_reference_entry(ref: Reference) -> str:
    """Format a single reference for plain-text display."""
    entry = f"{ref.number}. {ref.link_text}"
    if ref.url:
        entry += f" - {ref.url}"
    return entry


# ==========================
# Section Rendering
# ==========================

def render_section_markdown(
    section: AdviceSection,
    *,
    level: int = 3,
    references_marker: Optional[str] = None,
) -> str:
    """
    Render a section back to advice markdown.

    Args:
        section: AdviceSection to render
        level: Heading level, clamped to 3-6 so the parser still sees a heading
        references_marker: Label line before the references (defaults to the parser's)

    Returns:
        Markdown string for the section
    """
    hlevel = max(3, min(level, 6))
    marker = references_marker or DEFAULTS.parser.references_marker
    parts = [f"{'#' * hlevel} {section.title}"]

    for statement in section.statements:
        parts.append(statement.text)

    if section.references:
        parts.append(marker)
        parts.extend(render_reference_markdown(ref) for ref in section.references)

    return "\n".join(parts)


def render_sections_markdown(sections: Iterable[AdviceSection], **kwargs: Any) -> str:
    return "\n\n".join(render_section_markdown(s, **kwargs) for s in sections)


def render_statement_text(statement: AdviceStatement) -> str:
    label = statement.citation_label()
    return f"{statement.text} {label}" if label else statement.text


def render_sections_text(sections: Iterable[AdviceSection]) -> str:
    """Plain-text rendering: title, statements with citation labels, then the reference list."""
    blocks: List[str] = []
    for section in sections:
        lines = [section.title]
        lines.extend(render_statement_text(s) for s in section.statements)
        if section.references:
            lines.append("参考文献")
            lines.extend("  " + format_reference_entry(r) for r in section.references)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_with_disclaimer(
    content: str,
    used_parameters: Sequence[str] = (),
    *,
    include_disclaimer: bool = True,
    cfg: Optional[PromptConfig] = None,
) -> str:
    """Wrap a completion's content with the disclaimer and the list of parameters it was based on."""
    cfg = cfg or DEFAULTS.prompt
    formatted = ""
    if include_disclaimer:
        formatted += cfg.disclaimer + "\n\n"
    formatted += content
    if used_parameters:
        formatted += "\n\n" + cfg.used_parameters_label + ", ".join(used_parameters)
    return formatted


# ==========================
# JSON Payload
# ==========================

ADVICE_SECTIONS_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": {"$ref": "#/$defs/AdviceSection"},
    "$defs": {
        "Reference": {
            "type": "object",
            "required": ["number", "link_text", "url"],
            "properties": {
                "number": {"type": "integer", "minimum": 1},
                "link_text": {"type": "string"},
                "url": {"type": ["string", "null"]},
            },
            "additionalProperties": False,
        },
        "AdviceStatement": {
            "type": "object",
            "required": ["text", "reference_numbers"],
            "properties": {
                "text": {"type": "string"},
                "reference_numbers": {"type": "array", "items": {"type": "integer", "minimum": 1}},
            },
            "additionalProperties": False,
        },
        "AdviceSection": {
            "type": "object",
            "required": ["title", "statements", "references"],
            "properties": {
                "title": {"type": "string", "minLength": 1},
                "statements": {"type": "array", "items": {"$ref": "#/$defs/AdviceStatement"}},
                "references": {"type": "array", "items": {"$ref": "#/$defs/Reference"}},
            },
            "additionalProperties": False,
        },
    },
}


def sections_to_payload(sections: Iterable[AdviceSection]) -> List[Dict[str, Any]]:
    return [s.to_payload() for s in sections]


def sections_from_payload(payload: List[Dict[str, Any]]) -> List[AdviceSection]:
    """Rebuild sections from a payload produced by sections_to_payload."""
    return [
        AdviceSection(
            title=item["title"],
            statements=tuple(
                AdviceStatement(text=s["text"], reference_numbers=tuple(s["reference_numbers"]))
                for s in item["statements"]
            ),
            references=tuple(
                Reference(number=r["number"], link_text=r["link_text"], url=r["url"])
                for r in item["references"]
            ),
        )
        for item in payload
    ]


def validate_payload(payload: Any) -> Any:
    """Raise jsonschema.ValidationError if the payload does not match ADVICE_SECTIONS_SCHEMA."""
    Draft202012Validator(ADVICE_SECTIONS_SCHEMA).validate(payload)
    return payload


def validate_json(data_text: str) -> List[AdviceSection]:
    """Load, validate and rebuild sections from JSON text."""
    data = json.loads(data_text)
    return sections_from_payload(validate_payload(data))
