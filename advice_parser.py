# advice_parser.py
"""
Advice Markdown Parser

Turns the markdown returned by a chat-completion call into titled advice
sections, each with its statements and the numbered references listed
under the section's references marker.
"""

import json
import logging
import re
import sys
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import reduce
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from jsonschema import ValidationError

from config import DEFAULTS, ParserConfig
from models import AdviceSection, AdviceStatement, Reference
from utils import (
    render_sections_markdown,
    render_sections_text,
    sections_to_payload,
    validate_payload,
)

logger = logging.getLogger(__name__)


class LineKind(Enum):
    HEADING = "heading"
    REFERENCES_MARKER = "references_marker"
    BLANK = "blank"
    TEXT = "text"


class ParseState(Enum):
    NONE = "none"                   # before the first heading, or after an empty one
    IN_SECTION = "in_section"
    IN_REFERENCES = "in_references"


TRANSITIONS: Dict[Tuple[ParseState, LineKind], ParseState] = {
    (ParseState.NONE, LineKind.HEADING): ParseState.IN_SECTION,
    (ParseState.NONE, LineKind.REFERENCES_MARKER): ParseState.NONE,
    (ParseState.NONE, LineKind.BLANK): ParseState.NONE,
    (ParseState.NONE, LineKind.TEXT): ParseState.NONE,
    (ParseState.IN_SECTION, LineKind.HEADING): ParseState.IN_SECTION,
    (ParseState.IN_SECTION, LineKind.REFERENCES_MARKER): ParseState.IN_REFERENCES,
    (ParseState.IN_SECTION, LineKind.BLANK): ParseState.IN_SECTION,
    (ParseState.IN_SECTION, LineKind.TEXT): ParseState.IN_SECTION,
    (ParseState.IN_REFERENCES, LineKind.HEADING): ParseState.IN_SECTION,
    (ParseState.IN_REFERENCES, LineKind.REFERENCES_MARKER): ParseState.IN_REFERENCES,
    (ParseState.IN_REFERENCES, LineKind.BLANK): ParseState.IN_REFERENCES,
    (ParseState.IN_REFERENCES, LineKind.TEXT): ParseState.IN_REFERENCES,
}


def next_state(state: ParseState, kind: LineKind) -> ParseState:
    return TRANSITIONS[(state, kind)]


def classify_line(line: str, cfg: Optional[ParserConfig] = None) -> LineKind:
    """Classify a raw input line. Markers must start the line."""
    cfg = cfg or DEFAULTS.parser
    if line.startswith(cfg.heading_marker):
        return LineKind.HEADING
    if line.startswith(cfg.references_marker):
        return LineKind.REFERENCES_MARKER
    if not line.strip():
        return LineKind.BLANK
    return LineKind.TEXT


@dataclass(frozen=True)
class AdviceBlock:
    """A heading and the raw lines under it, up to the next heading."""
    title: str
    lines: Tuple[str, ...] = ()


@dataclass(frozen=True)
class _Accumulator:
    # The lists are owned by a single parse_block call and only ever appended to
    state: ParseState = ParseState.IN_SECTION
    statements: List[AdviceStatement] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)
    buffer: List[str] = field(default_factory=list)    # statement lines in progress (multiline mode only)


class AdviceMarkdownParser:
    """Parses advice markdown into AdviceSection records. Holds no per-call state."""

    def __init__(self, cfg: Optional[ParserConfig] = None):
        self.cfg = cfg or DEFAULTS.parser
        self.reference_pattern = re.compile(self.cfg.reference_regex)
        self.citation_pattern = re.compile(self.cfg.citation_regex)

    # ---------- Public API ----------

    def parse(self, markdown: str) -> List[AdviceSection]:
        """Parse the markdown into sections, in document order. Never raises."""
        sections = [self.parse_block(block) for block in self.split_blocks(markdown)]
        logger.debug(
            "Parsed %d advice section(s), %d reference(s)",
            len(sections), sum(len(s.references) for s in sections),
        )
        return sections

    def split_blocks(self, markdown: str) -> List[AdviceBlock]:
        """Split the input into heading-delimited blocks, dropping lines outside any section."""
        blocks: List[AdviceBlock] = []
        title: Optional[str] = None
        lines: List[str] = []
        state = ParseState.NONE

        for line in markdown.split("\n"):
            kind = classify_line(line, self.cfg)
            if kind is LineKind.HEADING:
                if title is not None:
                    blocks.append(AdviceBlock(title, tuple(lines)))
                title = self._heading_title(line) or None
                lines = []
                # An empty heading closes the open section without starting one
                state = next_state(state, kind) if title else ParseState.NONE
                continue

            state = next_state(state, kind)
            if state is ParseState.NONE:
                if kind is not LineKind.BLANK:
                    logger.debug("Dropping line outside any section: %r", line)
                continue
            lines.append(line)

        if title is not None:
            blocks.append(AdviceBlock(title, tuple(lines)))
        return blocks

    def parse_block(self, block: AdviceBlock) -> AdviceSection:
        """Fold a block's lines into one section."""
        acc = self._flush(reduce(self._step, block.lines, _Accumulator()))
        return AdviceSection(
            title=block.title,
            statements=tuple(acc.statements),
            references=tuple(acc.references),
        )

    def extract_references(self, line: str) -> List[Reference]:
        """Return every well-formed "[N][text](url)" reference on the line, in order."""
        refs: List[Reference] = []
        matches = list(self.reference_pattern.finditer(line))
        if not matches:
            logger.debug("No reference found in line: %r", line)
        for m in matches:
            number = _parse_number(m.group(1))
            url = _parse_url(m.group(3))
            if number is None or url is None:
                logger.debug("Dropping unparsable reference: %r", m.group(0))
                continue
            refs.append(Reference(number=number, link_text=m.group(2), url=url))
        return refs

    def extract_citations(self, text: str) -> List[int]:
        """Reference numbers cited inline, e.g. "[1,2]", in first-seen order."""
        numbers: List[int] = []
        for m in self.citation_pattern.finditer(text):
            for part in re.split(r"[,，、]", m.group(1)):
                number = _parse_number(part.strip())
                if number is not None:
                    numbers.append(number)
        return list(dict.fromkeys(numbers))

    # ---------- Internal methods ----------

    def _heading_title(self, line: str) -> str:
        return line.lstrip("#").strip()

    def _step(self, acc: _Accumulator, line: str) -> _Accumulator:
        kind = classify_line(line, self.cfg)
        state = next_state(acc.state, kind)

        if kind is LineKind.REFERENCES_MARKER:
            return replace(self._flush(acc), state=state)
        if kind is LineKind.BLANK:
            if self.cfg.multiline_statements:
                return replace(self._flush(acc), state=state)
            return replace(acc, state=state)
        if acc.state is ParseState.IN_REFERENCES:
            acc.references.extend(self.extract_references(line))
            return replace(acc, state=state)
        return self._add_text(replace(acc, state=state), line.strip())

    def _add_text(self, acc: _Accumulator, text: str) -> _Accumulator:
        if self.cfg.multiline_statements:
            acc.buffer.append(text)
        else:
            acc.statements.append(self._make_statement(text))
        return acc

    def _flush(self, acc: _Accumulator) -> _Accumulator:
        if acc.buffer:
            acc.statements.append(self._make_statement("\n".join(acc.buffer)))
            acc.buffer.clear()
        return acc

    def _make_statement(self, text: str) -> AdviceStatement:
        numbers = self.extract_citations(text) if self.cfg.extract_citations else []
        return AdviceStatement(text=text, reference_numbers=tuple(numbers))


def _parse_number(raw: str) -> Optional[int]:
    # ASCII digits only; full-width and other Unicode digits are not numbers here
    if not (raw.isascii() and raw.isdigit()):
        return None
    number = int(raw)
    return number if number > 0 else None


def _parse_url(raw: str) -> Optional[str]:
    if not raw or any(ch.isspace() for ch in raw):
        return None
    try:
        urlsplit(raw)
    except ValueError:
        return None
    return raw


def parse(markdown: str, cfg: Optional[ParserConfig] = None) -> List[AdviceSection]:
    """Convenience wrapper: parse with a fresh parser."""
    return AdviceMarkdownParser(cfg).parse(markdown)


# ---------- Command line ----------

def _read_input(path: Optional[str]) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise SystemExit(f"[InputError] cannot read {path}: {e}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    ap = argparse.ArgumentParser(description="Parse AI advice markdown into sections with references")
    ap.add_argument("path", nargs="?", help="Markdown file (default: stdin)")
    ap.add_argument("--format", choices=["markdown", "json", "text"], default="markdown")
    ap.add_argument("--multiline", action="store_true", help="Join consecutive text lines into one statement")
    ap.add_argument("--citations", action="store_true", help="Collect inline [N] citations per statement")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    cfg = replace(DEFAULTS.parser, multiline_statements=args.multiline, extract_citations=args.citations)
    sections = AdviceMarkdownParser(cfg).parse(_read_input(args.path))
    if not sections:
        print("[WARN] no advice sections found", file=sys.stderr)
    else:
        n_refs = sum(len(s.references) for s in sections)
        print(f"[INFO] parsed {len(sections)} section(s), {n_refs} reference(s)", file=sys.stderr)

    if args.format == "json":
        payload = sections_to_payload(sections)
        try:
            validate_payload(payload)
        except ValidationError as e:
            raise SystemExit(f"[SchemaError] parsed sections invalid: {e.message}")
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
    elif args.format == "text":
        sys.stdout.write(render_sections_text(sections) + "\n")
    else:
        sys.stdout.write(render_sections_markdown(sections) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
