from pydantic import BaseModel, Field
from typing import Optional

class Place(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    tz: str
    query: Optional[str] = None

class ChartInput(BaseModel):
    date: str  # YYYY-MM-DD
    time: str  # HH:MM[:SS]
    time_known: bool = True
    place: Place
    options: Optional[dict] = None  # {"ayanamsha": "lahiri"}
