"""
Unit tests for CSV import and export
"""
from datetime import datetime

import pytest

from leaddesk.domain.models.lead import Lead
from leaddesk.domain.services.csv_transfer import (
    BOM,
    EXPORT_HEADERS,
    decode_upload,
    export_leads_csv,
    parse_leads_csv,
)


class TestParseLeadsCsv:

    def test_header_skipped(self):
        candidates = parse_leads_csv("name,phone\nAsha,9876543210\nRavi,9123456780\n")
        assert [(c.name, c.phone) for c in candidates] == [
            ("Asha", "9876543210"),
            ("Ravi", "9123456780"),
        ]

    def test_rows_missing_values_dropped(self):
        candidates = parse_leads_csv("name,phone\n,9876543210\nRavi,\nOnly\n\nMeena, 9000000000 \n")
        assert [(c.name, c.phone) for c in candidates] == [("Meena", "9000000000")]

    def test_decode_with_bom(self):
        assert decode_upload("\ufeffname,phone".encode("utf-8")) == "name,phone"

    def test_decode_falls_back_to_latin1(self):
        assert decode_upload("José".encode("latin-1")) == "José"


class TestExportLeadsCsv:

    def test_bom_and_headers(self):
        body = export_leads_csv([])
        assert body.startswith(BOM)
        assert body[len(BOM):].strip() == ",".join(f'"{h}"' for h in EXPORT_HEADERS)

    def test_row_formatting(self):
        lead = Lead(
            id="1",
            name="Asha",
            phone="9876543210",
            status="call_back",
            notes='said "call later"',
            duration="1m 5s",
            timestamp=datetime(2024, 5, 1, 9, 30),
        )
        lines = export_leads_csv([lead]).splitlines()
        assert lines[1] == '"Asha","9876543210","CALL_BACK","1m 5s","said ""call later""","2024-05-01T09:30:00"'

    def test_untouched_lead_placeholders(self):
        lead = Lead(id="1", name="Ravi", phone="9123456780")
        lines = export_leads_csv([lead]).splitlines()
        assert lines[1] == '"Ravi","9123456780","PENDING","--","","--"'


@pytest.mark.parametrize("text,count", [
    ("name,phone\n", 0),
    ("name,phone\nA,1\nB,2\nC,3\n", 3),
])
def test_parse_counts(text, count):
    assert len(parse_leads_csv(text)) == count
