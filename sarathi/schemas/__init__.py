from .charts import ChartInput, Place

from .dashas import DashaComputeRequest, DashaComputeResponse
from .timing import (
    BottomLine,
    PredictionResult,
    TimingPredictRequest,
    WindowOut,
)
