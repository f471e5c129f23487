"""
Prompt construction for one summarization request.

The request is a system instruction plus a user turn holding the summary
request followed by the document text. Text that does not fit the input
budget is cut at the last paragraph (or, failing that, line) boundary
inside the budget; it is never split across several requests.
"""

from __future__ import annotations

from dataclasses import dataclass

SYSTEM_PROMPT = (
    "You are a technical documentation summarizer. Your goal is to create "
    "ultra-concise summaries that preserve critical technical information "
    "while eliminating redundancy."
)

SUMMARY_REQUEST = (
    "Create a concise technical summary of the following documentation. "
    "Focus on preserving critical technical information while removing "
    "redundant or commonly known details. Use precise technical terminology. "
    "The summary should be optimized for use as context in other LLM workflows."
)

TRUNCATION_MARKER = "\n\n[... documentation truncated to fit the model context ...]"


@dataclass(frozen=True)
class Prompt:
    """Messages for one request, plus whether the document was cut."""
    system: str
    user: str
    truncated: bool = False

    def as_messages(self) -> list[dict]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def truncate_to_budget(text: str, budget_chars: int) -> tuple[str, bool]:
    """
    Fit text into budget_chars characters.

    Returns:
        (text, truncated). When truncated, the text ends at a paragraph or
        line boundary if one exists inside the budget, and carries
        TRUNCATION_MARKER.
    """
    if len(text) <= budget_chars:
        return text, False

    room = max(budget_chars - len(TRUNCATION_MARKER), 0)
    head = text[:room]
    for boundary in ("\n\n", "\n"):
        cut = head.rfind(boundary)
        if cut > 0:
            head = head[:cut]
            break
    return head.rstrip() + TRUNCATION_MARKER, True


def build_prompt(text: str, budget_chars: int) -> Prompt:
    body, truncated = truncate_to_budget(text, budget_chars)
    return Prompt(
        system=SYSTEM_PROMPT,
        user=f"{SUMMARY_REQUEST}\n\n{body}",
        truncated=truncated,
    )
