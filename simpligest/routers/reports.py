from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, raise_for_domain_error, require_permission
from simpligest.services.report_service import build_report, export_report_xlsx

router = APIRouter(prefix="/reports", tags=["Reports"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _load_report(db, metrics, time_range):
    try:
        return build_report(db, metrics=metrics, time_range=time_range)
    except ValueError as exc:
        raise_for_domain_error(exc)


@router.get("")
def get_report(
    metrics: Optional[str] = Query(None, description="Comma separated: sales,stock,suppliers"),
    time_range: str = Query("30d"),
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    return _load_report(db, metrics, time_range)


@router.get("/export")
def export_report(
    metrics: Optional[str] = Query(None),
    time_range: str = Query("30d"),
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    report = _load_report(db, metrics, time_range)
    content = export_report_xlsx(report)
    filename = "simpligest-report-{}.xlsx".format(time_range)
    return Response(
        content=content,
        media_type=_XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )
