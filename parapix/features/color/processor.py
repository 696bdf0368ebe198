from parapix.domain.interfaces import IProcessor, PipelineContext
from parapix.domain.types import ImageBuffer
from parapix.features.color.models import ColorConfig
from parapix.features.color.logic import apply_color


class ColorProcessor(IProcessor):
    def __init__(self, config: ColorConfig):
        self.config = config

    def is_neutral(self) -> bool:
        return self.config.is_neutral()

    def process(self, image: ImageBuffer, context: PipelineContext) -> ImageBuffer:
        if self.is_neutral():
            return image
        context.executed.append("color")
        return apply_color(image, self.config)
