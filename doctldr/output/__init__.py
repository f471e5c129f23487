"""
Output Package

Rendering summaries (Markdown, JSON, plain text) and writing the result.
"""

from doctldr.output.formatters import RENDERERS, render, render_preview
from doctldr.output.writer import write_output

__all__ = ['RENDERERS', 'render', 'render_preview', 'write_output']
