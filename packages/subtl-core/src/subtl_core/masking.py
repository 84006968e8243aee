"""Inline markup masking for cue text.

Markup spans such as ``<i>`` or ``{\\an8}`` are swapped for ``[[TAG_n]]``
placeholders before translation so the remote model cannot rewrite them,
then restored afterwards.
"""

from __future__ import annotations

from subtl_schemas.subtitles import TagPlaceholder

_CLOSERS = {"<": ">", "{": "}"}

type TagMapping = list[TagPlaceholder]


def placeholder_token(index: int) -> str:
    """Return the placeholder token for a mapping index.

    Args:
        index: 0-based position in the tag mapping.

    Returns:
        str: Placeholder token such as ``[[TAG_0]]``.
    """
    return f"[[TAG_{index}]]"


def mask_tags(text: str) -> tuple[str, TagMapping]:
    """Replace markup spans with sequential placeholder tokens.

    A span starts at ``<`` or ``{`` and ends at the first matching closer.
    Openers without a closer are kept as literal text.

    Args:
        text: Original cue text.

    Returns:
        tuple[str, TagMapping]: Masked text and the ordered tag mapping.
    """
    masked: list[str] = []
    mapping: TagMapping = []
    position = 0
    while position < len(text):
        char = text[position]
        closer = _CLOSERS.get(char)
        if closer is not None:
            end = text.find(closer, position + 1)
            if end != -1:
                token = placeholder_token(len(mapping))
                mapping.append(
                    TagPlaceholder(token=token, original=text[position : end + 1])
                )
                masked.append(token)
                position = end + 1
                continue
        masked.append(char)
        position += 1
    return "".join(masked), mapping


def unmask_tags(text: str, mapping: TagMapping) -> str:
    """Restore placeholder tokens to their original markup.

    Placeholders missing from ``text`` are skipped; restoration is best-effort.

    Args:
        text: Translated text that may contain placeholder tokens.
        mapping: Mapping produced by :func:`mask_tags` for the same cue.

    Returns:
        str: Text with placeholders replaced by the original spans.
    """
    for placeholder in mapping:
        text = text.replace(placeholder.token, placeholder.original)
    return text
