"""
Sanitization of user-provided text before it reaches log lines.
"""
import re


def sanitize_for_logging(value: str, max_length: int = 200) -> str:
    """
    Make free text (queries, field names from proposals) safe to log.

    Newlines become spaces so one message stays on one line, other control
    characters are dropped, and long values are truncated with "...".
    """
    if not value:
        return ""

    value = re.sub(r'[\r\n]', ' ', str(value))
    value = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', value)

    if len(value) > max_length:
        value = value[:max_length] + "..."

    return value
