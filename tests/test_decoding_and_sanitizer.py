"""
Tests for byte decoding and CharacterSanitizer.

Tests cover:
- BOM sniffing, UTF-8, locale and legacy fallbacks
- Binary detection
- Mojibake repair without disturbing code
- Control character and line ending cleanup
"""

import codecs
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from doctldr.errors import EncodingError, ExtractionError
from doctldr.extraction.decoding import candidate_encodings, detect_and_decode
from doctldr.extraction.sanitizer import CharacterSanitizer


class TestDetectAndDecode:
    """Test the decoding heuristics."""

    def test_plain_utf8(self):
        assert detect_and_decode("naïve café".encode("utf-8")) == ("naïve café", "utf-8")

    def test_empty_bytes(self):
        assert detect_and_decode(b"") == ("", "utf-8")

    def test_utf8_bom_removed(self):
        text, encoding = detect_and_decode(codecs.BOM_UTF8 + b"hello")
        assert text == "hello"
        assert encoding == "utf-8-sig"

    @pytest.mark.parametrize("codec", ["utf-16", "utf-32"])
    def test_utf16_and_utf32_with_bom(self, codec):
        # Python's utf-16/utf-32 encoders write a BOM
        text, encoding = detect_and_decode("Überblick".encode(codec))
        assert text == "Überblick"
        assert encoding == codec

    def test_cp1252_fallback(self):
        with patch("doctldr.extraction.decoding.locale.getpreferredencoding",
                   return_value="UTF-8"):
            text, encoding = detect_and_decode(b"caf\xe9 na\xefve")
        assert text == "café naïve"
        assert encoding == "cp1252"

    def test_candidates_deduplicated(self):
        with patch("doctldr.extraction.decoding.locale.getpreferredencoding",
                   return_value="utf8"):
            assert candidate_encodings() == ["utf-8", "cp1252", "shift_jis"]

    def test_unknown_locale_encoding_ignored(self):
        with patch("doctldr.extraction.decoding.locale.getpreferredencoding",
                   return_value="no-such-codec"):
            assert candidate_encodings() == ["utf-8", "cp1252", "shift_jis"]

    def test_binary_rejected(self):
        with pytest.raises(EncodingError) as exc_info:
            detect_and_decode(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR", path="logo.txt")
        assert isinstance(exc_info.value, ExtractionError)
        assert exc_info.value.path == Path("logo.txt")

    def test_broken_bom_content_rejected(self):
        # UTF-16 LE BOM followed by a lone high surrogate
        with pytest.raises(EncodingError):
            detect_and_decode(codecs.BOM_UTF16_LE + b"\x00\xd8")


class TestCharacterSanitizer:
    """Test CharacterSanitizer cleanup stages."""

    def test_clean_text_unchanged(self):
        sanitizer = CharacterSanitizer()
        text = "def f(x):\n\treturn x * 2  # “quoted”"
        cleaned, stats = sanitizer.sanitize(text)
        assert cleaned == text
        assert stats == {
            "mojibake_fixed": 0,
            "line_breaks_normalized": 0,
            "control_chars_removed": 0,
            "private_use_removed": 0,
        }

    def test_mojibake_repaired(self):
        sanitizer = CharacterSanitizer()
        cleaned, stats = sanitizer.sanitize("donâ€™t panic")
        assert cleaned == "don’t panic"
        assert stats["mojibake_fixed"] > 0

    def test_line_endings_normalized(self):
        sanitizer = CharacterSanitizer()
        cleaned, stats = sanitizer.sanitize("a\r\nb\rc\u2028d")
        assert cleaned == "a\nb\nc\nd"
        assert stats["line_breaks_normalized"] == 3

    def test_control_and_zero_width_removed(self):
        sanitizer = CharacterSanitizer()
        cleaned, stats = sanitizer.sanitize("a\x07b\u200bc\ufeffd")
        assert cleaned == "abcd"

    def test_decomposed_accents_kept(self):
        sanitizer = CharacterSanitizer()
        # "e" + COMBINING ACUTE ACCENT, as it might appear in a code sample
        text = "name = 'cafe\u0301'"
        cleaned, stats = sanitizer.sanitize(text)
        assert cleaned == text
        assert stats["mojibake_fixed"] == 0

    def test_joiners_kept(self):
        sanitizer = CharacterSanitizer()
        text = "emoji = '\U0001F468\u200d\U0001F4BB'  # ZWJ sequence\nmi\u200ckhah"
        cleaned, _ = sanitizer.sanitize(text)
        assert cleaned == text

    def test_private_use_removed(self):
        sanitizer = CharacterSanitizer()
        cleaned, stats = sanitizer.sanitize("icon\ue000here")
        assert cleaned == "iconhere"
        assert stats["private_use_removed"] == 1

    def test_full_width_and_ligatures_kept(self):
        sanitizer = CharacterSanitizer()
        text = "ＡＢＣ ﬁle"
        cleaned, _ = sanitizer.sanitize(text)
        assert cleaned == text

    def test_log_records_changes(self):
        sanitizer = CharacterSanitizer()
        sanitizer.sanitize("a\r\nb")
        assert any("line breaks" in entry for entry in sanitizer.get_log())
