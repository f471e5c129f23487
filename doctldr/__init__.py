"""
doctldr - condense documentation trees into LLM-ready summaries.

Walks documentation directories, strips Markdown/reStructuredText/HTML
markup, asks a chat-completions backend for a summary of each file, and
renders the results as Markdown, JSON or plain text.
"""

__version__ = "0.1.0"
