from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, require_permission
from simpligest.schemas.insight import AssistantSummary, ProductInsightRead
from simpligest.services.insight_service import assistant_summary, build_insights, pricing_opportunities

router = APIRouter(prefix="/insights", tags=["Insights"])


@router.get("", response_model=List[ProductInsightRead])
def get_insights(
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_inventory")),
):
    return build_insights(db)


@router.get("/opportunities", response_model=List[ProductInsightRead])
def get_opportunities(
    threshold: Optional[float] = Query(None, ge=0),
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_inventory")),
):
    return pricing_opportunities(build_insights(db), threshold_pct=threshold)


@router.get("/assistant", response_model=AssistantSummary)
def get_assistant_summary(
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    summary = assistant_summary(db)
    db.commit()
    return summary
