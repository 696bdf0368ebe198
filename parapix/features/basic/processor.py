from parapix.domain.interfaces import IProcessor, PipelineContext
from parapix.domain.types import ImageBuffer
from parapix.features.basic.models import BasicConfig
from parapix.features.basic.logic import apply_basic_adjustments


class BasicProcessor(IProcessor):
    """
    Exposure, contrast, tonal range, clarity and dehaze.
    """

    def __init__(self, config: BasicConfig):
        self.config = config

    def is_neutral(self) -> bool:
        return self.config.is_neutral()

    def process(self, image: ImageBuffer, context: PipelineContext) -> ImageBuffer:
        if self.is_neutral():
            return image
        context.executed.append("basic")
        return apply_basic_adjustments(image, self.config)
