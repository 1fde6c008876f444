"""Crisis pipeline entry point package."""

from unmute.services.pipeline.crisis_pipeline import (
    CrisisPipeline,
    DeferredUpdate,
    PipelineOutcome,
)

__all__ = ["CrisisPipeline", "DeferredUpdate", "PipelineOutcome"]
