from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, List, Literal, Dict
from .charts import ChartInput

Status = Literal["ok", "no_signal", "partial"]
Strength = Literal["low", "medium", "high"]

class DashaOverrideIn(BaseModel):
    lord: str
    start: str  # ISO datetime of the (notional) first Mahadasha start

class TimingOptions(BaseModel):
    horizon_days: Optional[int] = Field(default=None, ge=1, le=3660)
    start: Optional[str] = None  # ISO date; defaults to today (UTC)
    threshold: Optional[float] = Field(default=None, ge=0, le=1)
    min_days: Optional[int] = Field(default=None, ge=1)
    max_days: Optional[int] = Field(default=None, ge=1)
    top_n: Optional[int] = Field(default=None, ge=1, le=20)
    step_days: int = Field(default=1, ge=1, le=30)
    dasha_override: Optional[DashaOverrideIn] = None

class TimingPredictRequest(BaseModel):
    chart_input: ChartInput
    category: str = "general"
    options: TimingOptions = TimingOptions()

class HorizonOut(BaseModel):
    start: str
    end: str
    computed_end: Optional[str] = None  # set when the run was cut short

class WindowOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    label: str
    score: float
    strength_label: Strength
    reasons: List[str]
    days: int

class BottomLine(BaseModel):
    lead: str
    nuance: Optional[str] = None
    verdict: Literal["go", "cautious_go", "wait"] = "wait"
    best_window: Optional[WindowOut] = None

class CurrentDasha(BaseModel):
    md: Optional[str] = None
    ad: Optional[str] = None
    pd: Optional[str] = None
    label: str = "unknown"

class ScoreSummary(BaseModel):
    now: float
    peak: float
    confidence: float

class PredictionResult(BaseModel):
    category: str
    status: Status = "ok"
    horizon: HorizonOut
    windows: List[WindowOut] = []
    bottom_line: BottomLine
    current_dasha: CurrentDasha = CurrentDasha()
    key_signals: List[str] = []
    action_hints: List[str] = []
    risk_hints: List[str] = []
    score: ScoreSummary
    meta: Dict[str, Any] = {}
