"""Flat candidate records for the ticket export path."""

import csv
import io
from typing import Any

from src.models.dialogue import ProfileFeedback
from src.models.results import ExportRecord

CSV_HEADER = ["Nome", "LinkedIn", "Headline", "Empresa", "Avaliação", "Motivo"]

_FEEDBACK_LABELS = {
    "interesting": "Interessante",
    "not_interesting": "Não Interessante",
    "": "",
}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def build_export_records(
    rows: list[dict[str, Any]],
    feedback: list[ProfileFeedback],
) -> list[ExportRecord]:
    """Join exported rows with recruiter feedback by stable identifier.

    When a profile was judged more than once, the latest judgement wins.

    Args:
        rows: Rows from the export query
        feedback: Full feedback set

    Returns:
        One flat record per row, in row order
    """
    latest = {entry.profile_id: entry for entry in feedback}

    records = []
    for row in rows:
        entry = latest.get(_text(row.get("profile_id")))
        label = ""
        if entry is not None:
            label = "interesting" if entry.interesting else "not_interesting"
        records.append(
            ExportRecord(
                name=_text(row.get("full_name")),
                profile_url=_text(row.get("profile_url")),
                headline=_text(row.get("headline") or row.get("current_job_title")),
                company=_text(row.get("current_company")),
                feedback_label=label,
                reason=_text(entry.reason) if entry is not None else "",
            )
        )
    return records


def records_to_csv(records: list[ExportRecord]) -> str:
    """Render export records as a fully quoted CSV document."""
    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADER) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for record in records:
        writer.writerow(
            [
                record.name,
                record.profile_url,
                record.headline,
                record.company,
                _FEEDBACK_LABELS[record.feedback_label],
                record.reason,
            ]
        )
    return buffer.getvalue()
