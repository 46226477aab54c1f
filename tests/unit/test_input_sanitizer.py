"""Test prompt input sanitization."""
from agende.input_sanitizer import InputSanitizer


class TestInputSanitizer:

    def test_removes_script_blocks(self):
        text = "Hello <script>alert('xss')</script>world"

        assert InputSanitizer.sanitize_text(text) == "Hello world"

    def test_removes_html_tags_and_javascript_protocol(self):
        text = '<a href="javascript:alert(1)">link</a> <b>bold</b>'

        assert InputSanitizer.sanitize_text(text) == "link bold"

    def test_keeps_line_breaks_but_collapses_spaces(self):
        text = "2024-05-10   09:00 - Design\n\n\n2024-05-11 10:00 -   Maquiagem"

        assert InputSanitizer.sanitize_text(text) == "2024-05-10 09:00 - Design\n2024-05-11 10:00 - Maquiagem"

    def test_strips_control_characters(self):
        assert InputSanitizer.sanitize_text("ok\x00\x07ay") == "okay"

    def test_truncates_long_text(self):
        assert len(InputSanitizer.sanitize_text("a" * 50, max_length=10)) == 10

    def test_empty_input(self):
        assert InputSanitizer.sanitize_text("") == ""
        assert InputSanitizer.sanitize_text(None) == ""
