from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Query

router = APIRouter()


@router.get("/api/reports/export")
def export_report(
    report_type: str = Query(default="document", alias="type"),
    time_range: str = Query(default="month", alias="timeRange"),
    export_format: str = Query(default="pdf", alias="format"),
) -> Dict[str, str]:
    # Placeholder until report rendering exists.
    return {
        "message": "Report generation is not implemented yet",
        "reportType": report_type,
        "timeRange": time_range,
        "format": export_format,
    }
