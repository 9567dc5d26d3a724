from pydantic import BaseModel
from typing import Optional, List, Literal, Dict, Any
from .charts import ChartInput

Level = Literal[1, 2, 3]  # 1 = Mahadasha, 2 = + Antardasha, 3 = + Pratyantardasha

class DashaOptions(BaseModel):
    levels: Level = 2
    ayanamsha: str = "lahiri"

class DashaComputeRequest(BaseModel):
    chart_input: ChartInput
    options: DashaOptions = DashaOptions()

class DashaPeriod(BaseModel):
    level: int
    lord: str
    start: str  # ISO date
    end: str    # ISO date
    parent: Optional[str] = None  # lord one level up

class DashaComputeResponse(BaseModel):
    meta: Dict[str, Any]
    periods: List[DashaPeriod]
