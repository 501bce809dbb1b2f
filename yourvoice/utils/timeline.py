"""
Citizen-facing timeline formatting

Admins write free text into timeline titles and descriptions, mixed with
status-change boilerplate ("Status diubah dari X ke Y") and the canned
status templates. The status page shows a canonical title and template per
status plus whatever admin note is left after stripping that boilerplate.
"""
import re
from typing import Optional

STATUS_LABELS = {
    "pending": "Laporan Diterima",
    "in_progress": "Sedang Diproses",
    "resolved": "Selesai Ditangani",
    "closed": "Laporan Ditutup",
}

CATEGORY_LABELS = {
    "bullying": "Bullying",
    "idea": "Ide/Saran",
}

STATUS_TITLES = {
    "pending": "Laporan Diterima",
    "in_progress": "Laporan Sedang Diproses",
    "resolved": "Laporan Selesai",
    "closed": "Laporan Ditutup",
}
DEFAULT_STATUS_TITLE = "Status Diperbarui"

STATUS_TEMPLATES = {
    "pending": "Laporan telah berhasil dibuat dan masuk ke sistem.",
    "in_progress": "Petugas telah menerima laporan dan mulai melakukan penanganan.",
    "resolved": "Penanganan laporan telah selesai dilakukan oleh tim terkait.",
    "closed": "Laporan ini telah ditutup.",
}

_STATUS_CHANGE = re.compile(r'Status diubah dari\s+\w+\s+ke\s+\w+', re.IGNORECASE)
_STATUS_TARGET = re.compile(r'ke\s+(in_progress|pending|resolved|closed)')
_TEMPLATE_PATTERNS = [
    re.compile(re.escape(template), re.IGNORECASE) for template in STATUS_TEMPLATES.values()
]
_STATUS_WORDS = re.compile(r'in_progress|pending|resolved|closed')
_PROGRESS_SUFFIX = re.compile(r',\s*Progress:\s*\d+%', re.IGNORECASE)
_WHITESPACE = re.compile(r'\s+')


def status_title(status: str) -> str:
    return STATUS_TITLES.get(status, DEFAULT_STATUS_TITLE)


def status_template(status: str) -> str:
    return STATUS_TEMPLATES.get(status, "")


def resolve_entry_status(status: Optional[str], description: Optional[str]) -> str:
    """A 'ke <status>' phrase in the description wins over the stored status"""
    resolved = status or "pending"
    if description:
        match = _STATUS_TARGET.search(description)
        if match:
            resolved = match.group(1)
    return resolved


def strip_boilerplate(description: str) -> str:
    cleaned = _STATUS_CHANGE.sub("", description)
    for pattern in _TEMPLATE_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


def scrub_note(note: str) -> str:
    note = _STATUS_WORDS.sub("", note)
    note = _PROGRESS_SUFFIX.sub("", note)
    return _WHITESPACE.sub(" ", note).strip()


def extract_admin_note(title: Optional[str], description: Optional[str], status: str) -> str:
    """
    Extract the admin note from a timeline entry

    - a title that is not the canonical title for the status is a note
    - description text left after removing boilerplate is a note
      (appended to the title note with '. ')
    """
    expected_title = status_title(status)
    actual_title = (title or "").strip()
    template = status_template(status)

    is_default_title = (
        actual_title.lower() == expected_title.lower()
        or status.lower().replace("_", " ") in actual_title.lower()
    )

    note = ""
    if actual_title and not is_default_title:
        note = actual_title

    if description:
        remainder = strip_boilerplate(description)
        if remainder and remainder != template:
            note = f"{note}. {remainder}" if note else remainder

    return scrub_note(note) if note else ""
