"""Cleanup of free text before it is placed in an LLM prompt."""
import re

# Free-text fields are capped so one field cannot crowd out the prompt
MAX_FIELD_LENGTH = 4000


class InputSanitizer:
    """
    Strips markup and normalizes whitespace in admin-typed text.

    SQL injection is not a concern here (SQLAlchemy binds parameters); the
    goal is that notes and preferences reach the model as plain text.
    """

    HTML_TAG_PATTERN = re.compile(r'<[^>]+>')
    SCRIPT_PATTERN = re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL)
    JAVASCRIPT_PATTERN = re.compile(r'javascript:', re.IGNORECASE)
    CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

    @staticmethod
    def sanitize_text(text: str, max_length: int = MAX_FIELD_LENGTH) -> str:
        """
        Remove scripts, tags and control characters, collapse spaces and truncate.

        Line breaks are kept so multi-line booking histories stay readable.
        """
        if not text:
            return ""

        text = InputSanitizer.SCRIPT_PATTERN.sub('', text)
        text = InputSanitizer.JAVASCRIPT_PATTERN.sub('', text)
        text = InputSanitizer.HTML_TAG_PATTERN.sub('', text)
        text = InputSanitizer.CONTROL_CHARS_PATTERN.sub('', text)

        lines = [' '.join(line.split()) for line in text.splitlines()]
        text = '\n'.join(line for line in lines if line)

        return text[:max_length].strip()
