import datetime as dt
from dataclasses import replace

from fastapi import APIRouter, HTTPException
from ..schemas import PredictionResult, TimingPredictRequest
from ..services import ephem
from ..services.angles import UTC
from ..services.bodies import Body
from ..services.dashas_vimshottari import DashaOverride
from ..services.domains import get_domain
from ..services.errors import InsufficientBirthData
from ..services.orchestrators.timing_full import BirthData, Horizon, predict

router = APIRouter(prefix="/v1/timing", tags=["timing"])


def _parse_instant(value: str) -> dt.datetime:
    parsed = dt.datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


@router.post("/predict", response_model=PredictionResult, response_model_by_alias=True)
def predict_timing(req: TimingPredictRequest):
    ci = req.chart_input
    opts = req.options
    ayan = (ci.options or {}).get("ayanamsha", "lahiri")
    try:
        oracle = ephem.SwissEphemeris(ayanamsha=ayan)
        birth = BirthData.from_local(ci.date, ci.time, ci.place.tz)
        birth = replace(birth, ascendant=oracle.sidereal_ascendant(birth.instant, ci.place.lat, ci.place.lon))
        weights = get_domain(req.category)
        start = _parse_instant(opts.start) if opts.start else dt.datetime.now(UTC)
        horizon = Horizon.from_days(start, opts.horizon_days or weights.horizon_days)
        override = None
        if opts.dasha_override is not None:
            override = DashaOverride(
                lord=Body.from_name(opts.dasha_override.lord),
                start=_parse_instant(opts.dasha_override.start),
            )
        return predict(
            birth,
            req.category,
            horizon,
            oracle,
            weights=weights,
            step_days=opts.step_days,
            dasha_override=override,
            threshold=opts.threshold,
            min_days=opts.min_days,
            max_days=opts.max_days,
            top_n=opts.top_n,
        )
    except InsufficientBirthData as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
