"""
CharacterSanitizer: Normalize decoded text before markup stripping.

Problems addressed:
1. Mojibake (text that was decoded with the wrong codec upstream):
   "donâ€™t" → "don’t"
2. Mixed line endings: \\r\\n and lone \\r become \\n
3. Control characters other than tab and newline
4. Zero-width spaces and stray byte-order marks

Unlike a prose cleaner, this sanitizer must leave code excerpts intact, so
it never collapses whitespace, never straightens quotes, never folds
full-width characters or ligatures, and never changes Unicode normalization
form: a decomposed accent in a code sample stays decomposed. Uses ftfy for encoding recovery and
unicodedata for character classification.
"""

import re
import unicodedata
from typing import Dict, List, Tuple

import ftfy

# ftfy settings that only repair encoding damage. Everything that would
# rewrite legitimate characters inside code blocks is switched off.
_FTFY_CONFIG = ftfy.TextFixerConfig(
    unescape_html=False,
    uncurl_quotes=False,
    fix_latin_ligatures=False,
    fix_character_width=False,
    fix_line_breaks=True,
    normalization=None,
)

# Invisible artifacts of editors and file concatenation. Joiners (ZWJ, ZWNJ,
# word joiner) and other format characters are content and stay.
_STRAY_MARKS = "\u200b\ufeff"
_LINE_BREAKS = re.compile("\r\n?|\u2028|\u2029")


class CharacterSanitizer:
    """
    Sanitize decoded text for reliable markup stripping and summarization.

    Performs a three-stage cleanup:
    1. Normalize line endings to \\n
    2. Fix mojibake using ftfy
    3. Remove control, zero-width and private-use characters
    """

    def __init__(self):
        self.sanitization_log: List[str] = []

    def sanitize(self, text: str) -> Tuple[str, Dict]:
        """
        Sanitize text and return cleaned text + statistics.

        Args:
            text: Freshly decoded file contents

        Returns:
            (cleaned_text, stats_dict) where stats_dict contains:
            - mojibake_fixed: Count of characters changed by ftfy
            - line_breaks_normalized: Count of \\r\\n / \\r sequences replaced
            - control_chars_removed: Count of control characters removed
            - private_use_removed: Count of private-use/surrogate chars removed
        """
        self.sanitization_log = []
        stats = {
            "mojibake_fixed": 0,
            "line_breaks_normalized": 0,
            "control_chars_removed": 0,
            "private_use_removed": 0,
        }

        text, stats["line_breaks_normalized"] = self._normalize_line_breaks(text)
        text, stats["mojibake_fixed"] = self._fix_mojibake(text)
        text, stats["control_chars_removed"], stats["private_use_removed"] = (
            self._clean_problematic_chars(text)
        )

        return text, stats

    def _fix_mojibake(self, text: str) -> Tuple[str, int]:
        """Repair text that was decoded with the wrong codec upstream."""
        fixed = ftfy.fix_text(text, config=_FTFY_CONFIG)
        if fixed == text:
            return text, 0

        fixes = sum(1 for a, b in zip(text, fixed) if a != b) + abs(len(text) - len(fixed))
        self._log(f"Fixed {fixes} mojibake/encoding corruption characters")
        return fixed, fixes

    def _normalize_line_breaks(self, text: str) -> Tuple[str, int]:
        text, count = _LINE_BREAKS.subn("\n", text)
        if count:
            self._log(f"Normalized {count} line breaks")
        return text, count

    def _clean_problematic_chars(self, text: str) -> Tuple[str, int, int]:
        """
        Remove characters that carry no content for the backend.

        Returns:
            (cleaned_text, control_removed_count, private_use_count)
        """
        cleaned = []
        control_removed = 0
        private_use_removed = 0

        for char in text:
            if char in "\n\t":
                cleaned.append(char)
                continue

            category = unicodedata.category(char)
            if char in _STRAY_MARKS or category == "Cc":
                control_removed += 1
            elif category in ("Co", "Cs"):
                private_use_removed += 1
            else:
                cleaned.append(char)

        if control_removed:
            self._log(f"Removed {control_removed} control/zero-width characters")
        if private_use_removed:
            self._log(f"Removed {private_use_removed} private-use/surrogate characters")

        return "".join(cleaned), control_removed, private_use_removed

    def _log(self, message: str) -> None:
        self.sanitization_log.append(message)

    def get_log(self) -> List[str]:
        """Return the sanitization log."""
        return self.sanitization_log.copy()
