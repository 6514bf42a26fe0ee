"""Extract LaTeX fragments and explanations from free-text model completions.

The model is not guaranteed to return structured output, so extraction is an
ordered chain of rules where the first rule that yields content wins:

1. a fenced block labelled with the target language;
2. any fenced block;
3. text following an introductory phrase ("Here is the modified code:") up to
   the next blank line;
4. the longest balanced ``\\begin{..}``/``\\end{..}`` environment or
   ``\\documentclass`` … ``\\end{document}`` block;
5. the lines carrying LaTeX tokens, joined;
6. the whole response.

Rules 5 and 6 are tagged low confidence so callers can decide not to preview
them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from .exceptions import MalformedResponseError
from .models.completion import BackendSuggestion
from .models.suggestion import ParseRule

LOGGER = logging.getLogger(__name__)

EXPLANATION_PLACEHOLDER = "AI suggestion generated"
MIN_EXPLANATION_CHARS = 10
MAX_EXPLANATION_LINES = 3

LOW_CONFIDENCE_RULES: frozenset[ParseRule] = frozenset({"token_lines", "raw"})

_LANGUAGE_LABELS: dict[str, tuple[str, ...]] = {
    "latex": ("latex", "tex"),
}

_FENCE_RE = re.compile(
    r"```(?:(?P<label>[A-Za-z][\w+#.-]*)?[ \t]*\r?\n)?(?P<body>.*?)```",
    re.DOTALL,
)
_INTRO_PHRASE_RE = re.compile(
    r"\b(?:here(?:'s|\s+is)\s+the\s+(?:modified\s+|updated\s+|revised\s+)?(?:latex\s+)?code"
    r"|modified\s+code|latex\s+code|the\s+code\s+is|code)"
    r"\s*:\s*\n(?P<body>.*?)(?:\n[ \t]*\n|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_INLINE_LABEL_RE = re.compile(r"(?P<label>[A-Za-z][\w+#.-]*)\s+(?P<body>.*)", re.DOTALL)
_ENVIRONMENT_TOKEN_RE =re.compile(r"\\(?P<kind>begin|end)\{(?P<name>[^}]+)\}")
_DOCUMENT_RE = re.compile(r"\\documentclass.*?\\end\{document\}", re.DOTALL)
_TOKEN_LINE_RE = re.compile(r"\\|&|\b(?:hline|tabular|begin|end)\b")
_CODE_LINE_RE = re.compile(r"\\|```|&|hline")


@dataclass(frozen=True, slots=True)
class ParsedResponse:
    """Fragment and explanation isolated from one completion."""

    fragment: str
    explanation: str
    rule: ParseRule

    @property
    def low_confidence(self) -> bool:
        return self.rule in LOW_CONFIDENCE_RULES


def parse_response(raw: str, *, target_language: str = "latex") -> ParsedResponse:
    """Split ``raw`` into a fragment and an explanation."""

    text = raw or ""
    fragment, rule = extract_fragment(text, target_language=target_language)
    if rule == "raw":
        explanation = EXPLANATION_PLACEHOLDER
    else:
        explanation = extract_explanation(text)
    LOGGER.debug(
        "parser.extracted",
        extra={
            "extra_payload": {
                "rule": rule,
                "fragment_chars": len(fragment),
                "response_chars": len(text),
            }
        },
    )
    return ParsedResponse(fragment=fragment, explanation=explanation, rule=rule)


def parse_backend_payload(payload: Mapping[str, Any] | None) -> BackendSuggestion | None:
    """Validate structured suggestion fields; ``None`` when nothing usable is present."""

    if not payload:
        return None
    try:
        suggestion = BackendSuggestion.model_validate(dict(payload))
    except ValidationError as exc:
        raise MalformedResponseError(
            "Completion payload carried invalid suggestion fields.",
            details={"errors": exc.errors(include_input=False)},
        ) from exc
    if suggestion.action_type is None and not suggestion.has_fragment:
        return None
    return suggestion


def extract_fragment(text: str, *, target_language: str = "latex") -> tuple[str, ParseRule]:
    """Return the fragment and the rule that isolated it."""

    labels = _LANGUAGE_LABELS.get(target_language.lower(), (target_language.lower(),))
    fences = [_fence_parts(match, labels) for match in _FENCE_RE.finditer(text)]

    for label, body in fences:
        if label in labels:
            return body.strip(), "labeled_fence"

    if fences:
        return fences[0][1].strip(), "fenced"

    for match in _INTRO_PHRASE_RE.finditer(text):
        body = match.group("body").strip()
        if body:
            return body, "intro_phrase"

    spans = _structural_spans(text)
    if spans:
        start, end = max(spans, key=lambda span: span[1] - span[0])
        return text[start:end].strip(), "structure"

    token_lines = [
        line for line in text.splitlines() if line.strip() and _TOKEN_LINE_RE.search(line)
    ]
    if token_lines:
        return "\n".join(token_lines).strip(), "token_lines"

    return text, "raw"


def _fence_parts(match: re.Match[str], labels: tuple[str, ...]) -> tuple[str, str]:
    """Label and body of one fence; a known label may share the line with the body."""

    label = match.group("label")
    body = match.group("body")
    if label is not None:
        return label.lower(), body
    if match.start("body") != match.start() + 3:
        return "", body
    inline = _INLINE_LABEL_RE.match(body)
    if inline and inline.group("label").lower() in labels:
        return inline.group("label").lower(), inline.group("body")
    return "", body


def extract_explanation(text: str) -> str:
    """Return prose that accompanies the fragment."""

    before_fence = text.split("```", 1)[0].strip()
    if len(before_fence) > MIN_EXPLANATION_CHARS:
        return before_fence

    prose_lines = [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not _CODE_LINE_RE.search(line)
    ][:MAX_EXPLANATION_LINES]
    if prose_lines:
        return " ".join(prose_lines)

    return EXPLANATION_PLACEHOLDER


def _structural_spans(text: str) -> list[tuple[int, int]]:
    """Return spans of balanced environment blocks and whole documents."""

    spans: list[tuple[int, int]] = []
    open_environments: list[tuple[str, int]] = []
    for token in _ENVIRONMENT_TOKEN_RE.finditer(text):
        name = token.group("name").strip()
        if token.group("kind") == "begin":
            open_environments.append((name, token.start()))
            continue
        for index in range(len(open_environments) - 1, -1, -1):
            if open_environments[index][0] == name:
                start = open_environments[index][1]
                del open_environments[index:]
                spans.append((start, token.end()))
                break

    document = _DOCUMENT_RE.search(text)
    if document:
        spans.append(document.span())
    return spans


__all__ = [
    "EXPLANATION_PLACEHOLDER",
    "LOW_CONFIDENCE_RULES",
    "ParsedResponse",
    "extract_explanation",
    "extract_fragment",
    "parse_backend_payload",
    "parse_response",
]
