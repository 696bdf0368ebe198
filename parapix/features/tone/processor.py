from parapix.domain.interfaces import IProcessor, PipelineContext
from parapix.domain.types import ImageBuffer
from parapix.features.tone.models import ToneConfig
from parapix.features.tone.logic import apply_tone


class ToneProcessor(IProcessor):
    def __init__(self, config: ToneConfig):
        self.config = config

    def is_neutral(self) -> bool:
        return self.config.is_neutral()

    def process(self, image: ImageBuffer, context: PipelineContext) -> ImageBuffer:
        if self.is_neutral():
            return image
        context.executed.append("tone")
        return apply_tone(
            image,
            self.config.temperature,
            self.config.tint,
            self.config.curve,
            use_curve=self.config.has_curve,
        )
