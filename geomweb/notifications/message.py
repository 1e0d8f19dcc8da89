"""Text encoding of contact-form submissions stored as notifications.

A submission is stored as one labelled field per line followed by the free
text after a ``Message:`` marker::

    Nom: Jean Dupont
    Email: j@x.com
    Telephone: 0600000000
    Sujet: Devis
    Message:
    Bonjour

Older notifications carry ``Name (email)`` on their first line and no labels;
parsing accepts both and never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Field name and the label it is stored under.
LABELS: tuple[tuple[str, str], ...] = (
    ("sender_name", "nom"),
    ("sender_email", "email"),
    ("sender_phone", "telephone"),
    ("subject", "sujet"),
)
_LABEL_PATTERNS = {
    field: re.compile(rf"^{label}\s*:\s*(.*)$", re.IGNORECASE) for field, label in LABELS
}
_MESSAGE_MARKER = re.compile(r"^message\s*:", re.IGNORECASE)
_SUBJECT_MARKER = re.compile(r"^sujet\s*:", re.IGNORECASE)
_LEGACY_SENDER = re.compile(r"^(.*)\((.*)\)$")


@dataclass(frozen=True)
class ContactSubmission:
    """What a visitor typed in the contact form."""

    name: str
    email: str
    phone: str
    subject: str
    message: str


@dataclass(frozen=True)
class ParsedContactMessage:
    """Fields recovered from a stored notification message."""

    sender_name: str = ""
    sender_email: str = ""
    sender_phone: str = ""
    subject: str = ""
    body: str = ""


def format_contact_message(submission: ContactSubmission) -> str:
    """Encode a submission as a single text blob."""
    return "\n".join(
        [
            f"Nom: {submission.name.strip()}",
            f"Email: {submission.email.strip()}",
            f"Telephone: {submission.phone.strip()}",
            f"Sujet: {submission.subject.strip()}",
            "Message:",
            submission.message.strip(),
        ],
    )


def _labelled_value(lines: list[str], pattern: re.Pattern[str]) -> str:
    for line in lines:
        match = pattern.match(line)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return ""


def _lines_after(lines: list[str], marker: re.Pattern[str]) -> list[str] | None:
    for index, line in enumerate(lines):
        if marker.match(line):
            return lines[index + 1 :]
    return None


def parse_contact_message(raw: str) -> ParsedContactMessage:
    """Recover the submission fields from a stored message."""
    lines = [line.strip() for line in raw.split("\n")]
    lines = [line for line in lines if line]

    values = {field: _labelled_value(lines, _LABEL_PATTERNS[field]) for field, _ in LABELS}

    # Legacy messages start with "Name (email)"; each missing label falls back to it.
    first_line = lines[0] if lines else ""
    legacy = _LEGACY_SENDER.match(first_line)
    values["sender_name"] = values["sender_name"] or (
        (legacy.group(1).strip() if legacy else "") or first_line
    )
    values["sender_email"] = values["sender_email"] or (legacy.group(2).strip() if legacy else "")

    body_lines = _lines_after(lines, _MESSAGE_MARKER)
    if body_lines is None:
        body_lines = _lines_after(lines, _SUBJECT_MARKER)
    if body_lines is None:
        body_lines = lines[1:]

    return ParsedContactMessage(body="\n".join(body_lines), **values)
