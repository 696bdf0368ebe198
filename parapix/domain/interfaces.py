from typing import Protocol, Optional, runtime_checkable
from dataclasses import dataclass, field
import numpy as np
from parapix.domain.types import ImageBuffer


@dataclass
class PipelineContext:
    """
    Shared state passed through the pipeline.
    """

    # (Height, Width) of the working buffer
    size: tuple

    # Key of the source the working buffer was derived from; stage caches are
    # dropped whenever it changes
    source_key: str = ""

    # Random source for stochastic effects (grain)
    rng: Optional[np.random.Generator] = None

    # Names of stages that actually ran, in order
    executed: list = field(default_factory=list)


@runtime_checkable
class IProcessor(Protocol):
    """
    Interface for any image processing step.
    """

    def is_neutral(self) -> bool: ...

    def process(self, image: ImageBuffer, context: PipelineContext) -> ImageBuffer: ...
