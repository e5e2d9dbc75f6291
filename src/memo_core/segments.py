"""Turn flat transcripts and speaker intervals into karaoke segments."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .models import SpeakerInterval, TranscriptSegment

# Synthetic pacing used when the service gave no timing information.
WORD_STEP_SECONDS = 0.4
WORD_DURATION_SECONDS = 0.35


def merge_segments(
    full_text: str, intervals: Optional[Iterable[SpeakerInterval]] = None
) -> List[TranscriptSegment]:
    """Build the ordered segment list for ``full_text``.

    Speaker intervals map one-to-one onto segments in the order given (the
    service emits them sorted by start time). Without intervals every
    whitespace-separated token gets an evenly paced synthetic slot; those
    timestamps only approximate the audio.
    """

    items = list(intervals or [])
    if items:
        return [
            TranscriptSegment(
                text=item.text,
                start_seconds=max(0.0, float(item.start)),
                duration_seconds=max(0.0, float(item.end) - float(item.start)),
                speaker=item.speaker,
            )
            for item in items
        ]
    return [
        TranscriptSegment(
            text=word,
            start_seconds=index * WORD_STEP_SECONDS,
            duration_seconds=WORD_DURATION_SECONDS,
            speaker=None,
        )
        for index, word in enumerate(full_text.split())
    ]


def segments_to_intervals(segments: Iterable[TranscriptSegment]) -> List[SpeakerInterval]:
    return [
        SpeakerInterval(
            text=segment.text,
            start=segment.start_seconds,
            end=segment.end_seconds,
            speaker=segment.speaker,
        )
        for segment in segments
    ]


def active_segment_index(segments: Sequence[TranscriptSegment], position: float) -> Optional[int]:
    """Index of the last segment that started at or before ``position``."""

    found: Optional[int] = None
    for index, segment in enumerate(segments):
        if segment.start_seconds <= position:
            found = index
    return found


__all__ = [
    "WORD_DURATION_SECONDS",
    "WORD_STEP_SECONDS",
    "active_segment_index",
    "merge_segments",
    "segments_to_intervals",
]
