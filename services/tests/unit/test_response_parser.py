"""Unit tests for fragment and explanation extraction."""

from __future__ import annotations

import pytest

from latexai.services.exceptions import MalformedResponseError
from latexai.services.response_parser import (
    EXPLANATION_PLACEHOLDER,
    extract_explanation,
    extract_fragment,
    parse_backend_payload,
    parse_response,
)


def test_labeled_fence_yields_trimmed_fragment_and_preceding_explanation() -> None:
    raw = (
        "I converted the caption into a proper table environment.\n\n"
        "```latex\n"
        "  \\begin{tabular}{cc}\n  a & b \\\\\n  \\end{tabular}  \n"
        "```\n\n"
        "Let me know if you need more columns."
    )

    parsed = parse_response(raw)

    assert parsed.rule == "labeled_fence"
    assert parsed.fragment == "\\begin{tabular}{cc}\n  a & b \\\\\n  \\end{tabular}"
    assert parsed.explanation == "I converted the caption into a proper table environment."
    assert not parsed.low_confidence


def test_labeled_fence_wins_over_earlier_generic_fence() -> None:
    raw = "Before:\n```\nold text\n```\nAfter:\n```tex\n\\textbf{new}\n```"

    fragment, rule = extract_fragment(raw)

    assert rule == "labeled_fence"
    assert fragment == "\\textbf{new}"


def test_generic_fence_is_used_without_a_language_label() -> None:
    fragment, rule = extract_fragment("Sure thing:\n```\n\\section{Intro}\n```")

    assert rule == "fenced"
    assert fragment == "\\section{Intro}"


def test_fence_label_follows_target_language() -> None:
    raw = "```latex\n\\alpha\n```\n```markdown\n# Title\n```"

    fragment, rule = extract_fragment(raw, target_language="markdown")

    assert rule == "labeled_fence"
    assert fragment == "# Title"


def test_intro_phrase_takes_text_up_to_the_next_blank_line() -> None:
    raw = (
        "Here is the modified code:\n"
        "\\emph{important}\n"
        "\\cite{knuth}\n"
        "\n"
        "This keeps the emphasis consistent."
    )

    parsed = parse_response(raw)

    assert parsed.rule == "intro_phrase"
    assert parsed.fragment == "\\emph{important}\n\\cite{knuth}"


def test_labeled_fence_with_crlf_line_endings() -> None:
    raw = (
        "Here is the table.\r\n"
        "```latex\r\n\\begin{tabular}{cc}\r\na & b \\\\\r\n\\end{tabular}\r\n```"
    )

    parsed = parse_response(raw)

    assert parsed.rule == "labeled_fence"
    assert parsed.fragment == "\\begin{tabular}{cc}\r\na & b \\\\\r\n\\end{tabular}"
    assert not parsed.fragment.startswith("latex")


@pytest.mark.parametrize("label", ["latex", "tex", "LaTeX"])
def test_labeled_fence_with_body_on_the_label_line(label: str) -> None:
    raw = f"Here is the updated version.\n```{label} \\textbf{{x}}```"

    fragment, rule = extract_fragment(raw)

    assert rule == "labeled_fence"
    assert fragment == "\\textbf{x}"


def test_unknown_word_on_the_fence_line_is_kept_in_the_body() -> None:
    fragment, rule = extract_fragment("```emphasise \\emph{x}```")

    assert rule == "fenced"
    assert fragment == "emphasise \\emph{x}"


@pytest.mark.parametrize("word", ["Barcode", "Zipcode"])
def test_words_ending_in_code_are_not_intro_phrases(word: str) -> None:
    fragment, rule = extract_fragment(f"{word}:\nscan the label twice\n\nthen file it")

    assert rule != "intro_phrase"
    assert fragment != "scan the label twice"


def test_longest_balanced_environment_is_selected() -> None:
    raw = (
        "You could use \\begin{center}x\\end{center} or better:\n"
        "\\begin{figure}\n\\centering\n\\includegraphics{plot}\n\\end{figure}\n"
        "which floats properly."
    )

    fragment, rule = extract_fragment(raw)

    assert rule == "structure"
    assert fragment == "\\begin{figure}\n\\centering\n\\includegraphics{plot}\n\\end{figure}"


def test_whole_document_block_counts_as_structure() -> None:
    raw = "Full file:\n\\documentclass{article}\nbody\n\\end{document}\nDone."

    fragment, rule = extract_fragment(raw)

    assert rule == "structure"
    assert fragment.startswith("\\documentclass{article}")
    assert fragment.endswith("\\end{document}")


def test_token_lines_are_joined_and_flagged_low_confidence() -> None:
    raw = "Use these cells\na & b \\\\\nplain prose here\nc & d \\\\"

    parsed = parse_response(raw)

    assert parsed.rule == "token_lines"
    assert parsed.fragment == "a & b \\\\\nc & d \\\\"
    assert parsed.low_confidence


def test_raw_fallback_returns_entire_response_with_placeholder() -> None:
    raw = "I am not sure what you mean, could you clarify"

    parsed = parse_response(raw)

    assert parsed.rule == "raw"
    assert parsed.fragment == raw
    assert parsed.explanation == EXPLANATION_PLACEHOLDER
    assert parsed.low_confidence


def test_explanation_falls_back_to_prose_lines() -> None:
    raw = "```latex\n\\alpha\n```\nThis uses the Greek letter.\nIt renders inline."

    assert extract_explanation(raw) == "This uses the Greek letter. It renders inline."


def test_explanation_placeholder_when_only_code_present() -> None:
    assert extract_explanation("```\n\\alpha\n```") == EXPLANATION_PLACEHOLDER


def test_backend_payload_normalises_action_and_aliases() -> None:
    suggestion = parse_backend_payload(
        {
            "actionType": "MODIFY",
            "selectionRangeFrom": 4,
            "selectionRangeTo": 9,
            "latexSuggestion": "\\textit{x}",
            "unrelated": True,
        }
    )

    assert suggestion is not None
    assert suggestion.action_type == "replace"
    assert suggestion.explicit_range() == (4, 9)
    assert suggestion.has_fragment


def test_backend_payload_without_suggestion_fields_is_ignored() -> None:
    assert parse_backend_payload({"content": "plain answer"}) is None
    assert parse_backend_payload(None) is None


def test_backend_payload_with_invalid_fields_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        parse_backend_payload({"latexSuggestion": "x", "selectionRangeFrom": "not-a-number"})
