"""Numbered-list prompt protocol used for remote translation requests.

Each batch is sent as ``n. text`` lines wrapped in ``BEGIN``/``END`` markers,
with real line breaks inside a cue carried as the ``<NL>`` token. Responses
must come back in the same shape with exactly one item per requested cue.
"""

from __future__ import annotations

import re

from subtl_core.ports.llm import ResponseParseError
from subtl_schemas.batches import TranslationBatch

NEWLINE_TOKEN = "<NL>"
LITERAL_TOKEN_PLACEHOLDER = "__NL_LITERAL__"
BEGIN_MARKER = "BEGIN"
END_MARKER = "END"
SAMPLE_CHARS = 300
NOISE_PREFIXES = ("Note:",)

_ITEM_PATTERN = re.compile(r"^\s*([0-9]+)[.)]\s+(.*)$")

AUTO_DETECT_LABEL = "auto-detect"
LANGUAGE_LABELS: dict[str, str] = {
    "auto": AUTO_DETECT_LABEL,
    "en": "English",
    "zh": "Chinese (Simplified)",
    "zh-cn": "Chinese (Simplified)",
    "zh-hans": "Chinese (Simplified)",
    "zh-tw": "Chinese (Traditional)",
    "zh-hant": "Chinese (Traditional)",
    "ja": "Japanese",
    "ko": "Korean",
    "vi": "Vietnamese",
}

SYSTEM_PROMPT = (
    "You are a professional subtitle translator. Follow instructions precisely. "
    "Preserve placeholder tokens such as [[TAG_0]] exactly as written."
)


def normalize_newlines(text: str) -> str:
    """Convert ``\\r\\n`` and lone ``\\r`` line endings to ``\\n``.

    Args:
        text: Raw text.

    Returns:
        str: Text using ``\\n`` line endings only.
    """
    return text.replace("\r\n", "\n").replace("\r", "\n")


def encode_newlines(text: str) -> str:
    """Encode real line breaks as the newline token.

    Literal occurrences of the token are doubled first so they survive the
    round trip.

    Args:
        text: Cue text that may contain line breaks.

    Returns:
        str: Single-line text safe to place in a numbered item.
    """
    normalized = normalize_newlines(text)
    escaped = normalized.replace(NEWLINE_TOKEN, NEWLINE_TOKEN * 2)
    return escaped.replace("\n", NEWLINE_TOKEN)


def decode_newlines(text: str) -> str:
    """Reverse :func:`encode_newlines`.

    Args:
        text: Item text returned by the model.

    Returns:
        str: Text with real line breaks restored.
    """
    unescaped = text.replace(NEWLINE_TOKEN * 2, LITERAL_TOKEN_PLACEHOLDER)
    restored = unescaped.replace(NEWLINE_TOKEN, "\n")
    return restored.replace(LITERAL_TOKEN_PLACEHOLDER, NEWLINE_TOKEN)


def resolve_language_label(value: str) -> str:
    """Map a language code to the display label used in prompts.

    Unknown values pass through unchanged so callers may supply a label.

    Args:
        value: Language code (``en``, ``ja``, ``zh-Hans``...) or label.

    Returns:
        str: Display label for the language.
    """
    return LANGUAGE_LABELS.get(value.strip().lower(), value.strip())


def build_system_prompt() -> str:
    """Return the system instructions sent with every batch.

    Returns:
        str: System prompt text.
    """
    return SYSTEM_PROMPT


def build_numbered_list(texts: list[str]) -> str:
    """Render texts as ``n. text`` lines numbered from 1.

    Args:
        texts: Item texts in request order.

    Returns:
        str: Newline-joined numbered list.
    """
    return "\n".join(
        f"{number}. {encode_newlines(text)}"
        for number, text in enumerate(texts, start=1)
    )


def build_translation_prompt(
    batch: TranslationBatch, source_language: str, target_language: str
) -> str:
    """Build the user prompt for one batch.

    Args:
        batch: Batch to translate.
        source_language: Source language code or label (``auto`` allowed).
        target_language: Target language code or label.

    Returns:
        str: Prompt text with rules and the BEGIN/END-wrapped list.
    """
    source_label = resolve_language_label(source_language)
    target_label = resolve_language_label(target_language)
    if source_label == AUTO_DETECT_LABEL:
        heading = (
            f"Translate the following subtitles to {target_label}. "
            "Detect the source language automatically."
        )
    else:
        heading = (
            f"Translate the following {source_label} subtitles to {target_label}."
        )
    texts = [cue.masked_text for cue in batch.translate_cues]
    count = len(texts)
    rules = "\n".join(
        [
            "RULES:",
            f"- Return exactly {count} lines",
            '- Each line MUST start with its number followed by period: "1. ", '
            '"2. ", etc.',
            f"- Line breaks are encoded as {NEWLINE_TOKEN} token, keep them",
            f"- Do not insert real line breaks inside items; use {NEWLINE_TOKEN} "
            "token only",
            "- Keep placeholders like [[TAG_0]] exactly as they appear",
            "- No markdown, no code blocks, no extra blank lines",
            "- Do not merge or split items",
        ]
    )
    return (
        f"{heading}\n\n{rules}\n\n"
        f"{BEGIN_MARKER}\n{build_numbered_list(texts)}\n{END_MARKER}\n\n"
        f"Output format: numbered list between {BEGIN_MARKER}/{END_MARKER} "
        "delimiters only."
    )


def parse_numbered_response(response: str, expected_count: int) -> list[str]:
    """Parse a numbered-list response into decoded item texts.

    Args:
        response: Raw model output.
        expected_count: Number of items the request asked for.

    Returns:
        list[str]: Decoded texts ordered by item number ``1..expected_count``.

    Raises:
        ResponseParseError: If an item number repeats, is missing, or falls
            outside ``1..expected_count``.
    """
    content = _extract_content_lines(normalize_newlines(response).split("\n"))
    sample = "\n".join(content)[:SAMPLE_CHARS]

    items: dict[int, str] = {}
    current: int | None = None
    for line in content:
        match = _ITEM_PATTERN.match(line)
        if match is not None:
            number = int(match.group(1))
            if number in items:
                raise ResponseParseError(
                    f"Duplicate item number {number} in model response. "
                    f"Sample: {sample!r}",
                    expected_count=expected_count,
                    sample=sample,
                    duplicate_number=number,
                )
            items[number] = match.group(2).strip()
            current = number
            continue
        stripped = line.strip()
        if not stripped or stripped.startswith(NOISE_PREFIXES) or current is None:
            continue
        existing = items[current]
        items[current] = f"{existing}\n{stripped}" if existing else stripped

    expected = set(range(1, expected_count + 1))
    found = set(items)
    missing = sorted(expected - found)
    extra = sorted(found - expected)
    if missing or extra:
        raise ResponseParseError(
            f"Expected {expected_count} numbered items but found "
            f"{len(found)}; missing: {missing}; extra: {extra}. "
            f"Sample: {sample!r}",
            expected_count=expected_count,
            sample=sample,
            missing_numbers=missing,
            extra_numbers=extra,
        )
    return [decode_newlines(items[number]) for number in sorted(expected)]


def _extract_content_lines(lines: list[str]) -> list[str]:
    begin_index = _find_marker(lines, BEGIN_MARKER, 0)
    if begin_index is not None:
        start = begin_index + 1
        end_index = _find_marker(lines, END_MARKER, start)
        section = lines[start:end_index]
        if any(line.strip() for line in section):
            return section
    end_index = _find_marker(lines, END_MARKER, 0)
    return lines[:end_index]


def _find_marker(lines: list[str], marker: str, start: int) -> int | None:
    for index in range(start, len(lines)):
        if lines[index].strip() == marker:
            return index
    return None
