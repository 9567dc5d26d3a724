from fastapi import APIRouter, HTTPException
from ..schemas import DashaComputeRequest, DashaComputeResponse
from ..services.dashas_vimshottari import compute_vimshottari
from ..services.ephem import ENGINE_VERSION
from ..services.errors import DashaUnavailable

router = APIRouter(prefix="/v1/dashas", tags=["dashas"])

@router.post("/compute", response_model=DashaComputeResponse)
def compute_dashas(req: DashaComputeRequest):
    ayan = (req.chart_input.options or {}).get("ayanamsha", req.options.ayanamsha)
    try:
        periods = compute_vimshottari(req.chart_input.model_dump(), levels=req.options.levels, ayanamsha=ayan)
    except DashaUnavailable as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return DashaComputeResponse(
        meta={"system": "vedic", "ayanamsha": ayan, "levels": req.options.levels, "engine_version": ENGINE_VERSION},
        periods=periods
    )
