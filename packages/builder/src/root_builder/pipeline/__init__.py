from .context import RunContext
from .events import EventSink, EventType
from .runner import PipelineRunner, RunnerConfig, RunOutcome
from .stage import FunctionStage, Stage, StageResult, run_stage
from .types import Artifact, ArtifactRef, BuildEnvironment

__all__ = [
    "Artifact",
    "ArtifactRef",
    "BuildEnvironment",
    "EventSink",
    "EventType",
    "FunctionStage",
    "PipelineRunner",
    "RunContext",
    "RunOutcome",
    "RunnerConfig",
    "Stage",
    "StageResult",
    "run_stage",
]
