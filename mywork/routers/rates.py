from fastapi import APIRouter, HTTPException, Query

from mywork.core.api_docs import error_responses
from mywork.core.rates import presets_for
from mywork.schemas.rates import RateCardOut, RatePresetOut

router = APIRouter(prefix="/rates", tags=["rates"])


@router.get(
    "",
    response_model=RateCardOut,
    summary="Line item rate card",
    description="Preset labels, units and unit rates used to fill in job line items.",
    responses=error_responses(400, 500),
)
def list_rates(category: str | None = Query(default=None)):
    try:
        presets = presets_for(category)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return RateCardOut(
        items=[
            RatePresetOut(
                id=preset.id,
                label=preset.label,
                unit=preset.unit,
                rate=preset.rate,
                category=preset.category,
            )
            for preset in presets
        ]
    )
