"""
Extraction Package

Raw file bytes -> Document (decode, sanitize, strip markup).
"""

from doctldr.extraction.extractor import EXTRACTORS, extract, read_document

__all__ = ['EXTRACTORS', 'extract', 'read_document']
