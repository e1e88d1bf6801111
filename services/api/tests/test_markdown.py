"""
Tests for scope text markdown stripping.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.markdown import strip_markdown


class TestStripMarkdown:
    def test_empty(self):
        assert strip_markdown(None) == ""
        assert strip_markdown("") == ""

    def test_headers_removed(self):
        assert strip_markdown("## Kitchen\nPaint walls") == "Kitchen\nPaint walls"

    def test_bold_and_italic_removed(self):
        assert strip_markdown("**Paint** the _walls_ and *ceiling*") == "Paint the walls and ceiling"

    def test_bullets_rendered(self):
        """Dash and star bullets both become '• '."""
        assert strip_markdown("- one\n* two") == "• one\n• two"

    def test_plain_text_untouched(self):
        text = "Replace 2 outlets in bedroom"
        assert strip_markdown(text) == text
