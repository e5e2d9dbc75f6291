"""Prompt text shared by the client and the brain service."""

from __future__ import annotations

from typing import Iterable

DAILY_SEPARATOR = "\n\n---\n\n"

GLOBAL_SCOPE_DIRECTIVE = (
    "[SYSTEM: You are a private knowledge assistant. Your only source of facts is "
    "the user's recording transcripts in the local knowledge base. Do not search "
    "the computer, the internet or any other directory, and do not use external "
    "tools. If the answer is not in the local transcripts, say that you don't know.]"
)

SUMMARY_PROMPT = """You are an assistant that tidies up voice memos. Turn the transcript below into a concise summary of key points.

Format rules (follow strictly):
- Use **bold text followed by a colon** as section titles, for example **Main topics:**
- List each point as a "- " bullet
- Do not use # headings or tables

Transcript:
{transcript}"""

DAILY_PROMPT = """You maintain a personal knowledge base. Below are the voice memos and meeting notes I recorded on {date_label}.
Write a short daily report in my own voice.

Format rules (follow strictly):
- **Key items**: what were the most important things I moved forward or discussed today.
- **Details**: important decisions, numbers and to-dos.
- List each point as a "- " bullet.
- Be direct. No preamble such as "Sure, here is your report". Do not use # headings.

All of today's recordings:
{combined}"""


def combine_transcripts(transcripts: Iterable[str]) -> str:
    return DAILY_SEPARATOR.join(text.strip() for text in transcripts if text and text.strip())


def with_transcript_context(transcript: str, question: str) -> str:
    """First-turn message for a recording chat: transcript inline, then the question."""

    return (
        "Below is the transcript of a recording. Answer my question based on it.\n\n"
        f"[Transcript]\n{transcript}\n\n"
        f"[My question]\n{question}"
    )


def with_global_directive(message: str) -> str:
    return f"{GLOBAL_SCOPE_DIRECTIVE}\n\n{message}"


__all__ = [
    "DAILY_PROMPT",
    "DAILY_SEPARATOR",
    "GLOBAL_SCOPE_DIRECTIVE",
    "SUMMARY_PROMPT",
    "combine_transcripts",
    "with_global_directive",
    "with_transcript_context",
]
