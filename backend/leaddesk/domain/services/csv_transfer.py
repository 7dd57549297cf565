"""
CSV import and export for the owner console
"""
import csv
import io
import logging
from typing import Iterable, List

from leaddesk.domain.models.lead import Lead, LeadCandidate

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ["Identity", "Mobile", "Current Status", "Talk Time", "Agent Notes", "Last Sync"]
BOM = "\ufeff"


def decode_upload(content: bytes) -> str:
    """
    Decode an uploaded file, trying common spreadsheet encodings.

    Raises:
        ValueError: If no encoding fits
    """
    for encoding in ["utf-8-sig", "utf-8", "latin-1"]:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError("Unable to decode CSV file. Please use UTF-8 encoding.")


def parse_leads_csv(text: str) -> List[LeadCandidate]:
    """
    Read ``name,phone`` rows; the first row is a header.

    Rows missing either value are dropped. Phone validation happens at
    intake, not here.
    """
    reader = csv.reader(io.StringIO(text))
    candidates = []
    for row_num, row in enumerate(reader, start=1):
        if row_num == 1:
            continue
        name = row[0].strip() if len(row) > 0 else ""
        phone = row[1].strip() if len(row) > 1 else ""
        if not name or not phone:
            continue
        candidates.append(LeadCandidate(name=name, phone=phone))
    logger.info(f"Parsed {len(candidates)} candidate leads from CSV")
    return candidates


def export_leads_csv(leads: Iterable[Lead]) -> str:
    """Whole collection as a BOM-prefixed, fully quoted CSV"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for lead in leads:
        writer.writerow([
            lead.name,
            lead.phone,
            lead.status.value.upper(),
            lead.duration or "--",
            lead.notes or "",
            lead.timestamp.isoformat() if lead.timestamp else "--",
        ])
    return BOM + buffer.getvalue()
