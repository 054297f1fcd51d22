# models.py
"""
Data structures for the advice parsing pipeline.
Parsed records are immutable and compare by value.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Reference:
    """A numbered source listed under a section's references marker."""
    number: int
    link_text: str
    url: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {"number": self.number, "link_text": self.link_text, "url": self.url}


@dataclass(frozen=True)
class AdviceStatement:
    """One unit of advice prose within a section."""
    text: str                                    # may span lines, joined with "\n"
    reference_numbers: Tuple[int, ...] = ()

    def citation_label(self) -> str:
        """Render the cited reference numbers as "[1,2]", or "" when there are none."""
        if not self.reference_numbers:
            return ""
        return "[" + ",".join(str(n) for n in self.reference_numbers) + "]"

    def to_payload(self) -> Dict[str, Any]:
        return {"text": self.text, "reference_numbers": list(self.reference_numbers)}


@dataclass(frozen=True)
class AdviceSection:
    """A titled block of advice plus the references listed under it."""
    title: str
    statements: Tuple[AdviceStatement, ...] = field(default_factory=tuple)
    references: Tuple[Reference, ...] = field(default_factory=tuple)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "statements": [s.to_payload() for s in self.statements],
            "references": [r.to_payload() for r in self.references],
        }
