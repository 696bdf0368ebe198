from parapix.domain.interfaces import IProcessor, PipelineContext
from parapix.domain.types import ImageBuffer
from parapix.features.effects.models import EffectsConfig
from parapix.features.effects.logic import apply_effects


class EffectsProcessor(IProcessor):
    """
    Distortion, sharpening, noise reduction, vignette and grain.
    Skipped entirely, with no buffer copy, when every effect is neutral.
    """

    def __init__(self, config: EffectsConfig):
        self.config = config

    def is_neutral(self) -> bool:
        return self.config.is_neutral()

    def process(self, image: ImageBuffer, context: PipelineContext) -> ImageBuffer:
        if self.is_neutral():
            return image
        context.executed.append("effects")
        return apply_effects(image, self.config, context.rng)
