"""
Summarization Package

Prompt construction, the chat-completions backend, the retry state machine
and the SummarizationClient that ties them together.
"""

from doctldr.summarization.backend import ChatCompletionBackend
from doctldr.summarization.client import SummarizationClient, summarize
from doctldr.summarization.prompt import SYSTEM_PROMPT, Prompt, build_prompt
from doctldr.summarization.retry import (
    Attempting,
    FailedFatal,
    FailedTransient,
    Outcome,
    Succeeded,
    backoff_delay,
    next_state,
)

__all__ = [
    'ChatCompletionBackend',
    'SummarizationClient',
    'summarize',
    'SYSTEM_PROMPT',
    'Prompt',
    'build_prompt',
    'Attempting',
    'FailedFatal',
    'FailedTransient',
    'Outcome',
    'Succeeded',
    'backoff_delay',
    'next_state',
]
