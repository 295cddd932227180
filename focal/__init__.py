from .calculator import FocalCalculator, FocalLengthEstimate, DistanceCheck, MICROMETERS_PER_METER
from .config import Mode, RunConfig, CalibrationInputs, CaptureConfig, DetectorConfig
from .console import OperatorConsole
from .events import FocalEvents
from .pipeline import FocalPipeline, PipelineOutcome, check_tag_counts
