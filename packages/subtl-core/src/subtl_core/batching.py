"""Batch planner that partitions cues into size-bounded requests."""

from __future__ import annotations

from collections.abc import Sequence

from subtl_core.masking import mask_tags
from subtl_schemas.batches import PromptCue, TranslationBatch
from subtl_schemas.config import BatchConfig
from subtl_schemas.primitives import CueRole
from subtl_schemas.subtitles import SrtCue

CUE_OVERHEAD_CHARS = 16


def plan_batches(
    cues: Sequence[SrtCue], config: BatchConfig
) -> list[TranslationBatch]:
    """Partition cues into ordered translation batches.

    Windows of up to ``batch_size`` consecutive cues are shrunk one cue at a
    time until their estimated cost fits ``max_chars_per_request``. A
    single-cue window is always accepted since it cannot be split further.
    The result is deterministic for identical cues and config.

    Args:
        cues: Cues in document order.
        config: Batch planner settings.

    Returns:
        list[TranslationBatch]: Batches numbered from 0 whose
        ``translate_ids`` partition the cue ids in order.
    """
    masked_texts = [mask_tags(cue.text)[0] for cue in cues]
    costs = [
        estimate_cue_chars(masked, cue.timing_line)
        for masked, cue in zip(masked_texts, cues, strict=True)
    ]

    batches: list[TranslationBatch] = []
    start = 0
    while start < len(cues):
        end = min(start + config.batch_size, len(cues))
        budget = config.max_chars_per_request
        while end - start > 1 and sum(costs[start:end]) > budget:
            end -= 1
        prompt_cues = [
            PromptCue(
                cue_id=cues[index].id,
                timing=cues[index].timing_line,
                masked_text=masked_texts[index],
                role=CueRole.TRANSLATE,
            )
            for index in range(start, end)
        ]
        batches.append(
            TranslationBatch(
                batch_no=len(batches),
                translate_ids=[cue.cue_id for cue in prompt_cues],
                cues=prompt_cues,
            )
        )
        start = end
    return batches


def estimate_cue_chars(masked_text: str, timing_line: str) -> int:
    """Estimate the serialized request cost of one cue.

    Args:
        masked_text: Cue text after tag masking.
        timing_line: Original timing line.

    Returns:
        int: Estimated character cost.
    """
    return len(masked_text) + len(timing_line) + CUE_OVERHEAD_CHARS
