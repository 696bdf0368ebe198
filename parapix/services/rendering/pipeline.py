from typing import Any, Callable, List, Optional, Tuple
import numpy as np
from parapix.domain.interfaces import IProcessor, PipelineContext
from parapix.domain.models import Adjustments
from parapix.domain.types import ImageBuffer, PixelBuffer
from parapix.kernel.caching.logic import CacheEntry, calculate_config_hash
from parapix.kernel.caching.manager import PipelineCache
from parapix.kernel.image.logic import merge_alpha, split_alpha
from parapix.kernel.image.validation import ensure_image, ensure_pixel_buffer
from parapix.kernel.system.logging import get_logger
from parapix.features.basic.models import BasicConfig
from parapix.features.basic.processor import BasicProcessor
from parapix.features.tone.models import ToneConfig
from parapix.features.tone.processor import ToneProcessor
from parapix.features.color.models import ColorConfig
from parapix.features.color.processor import ColorProcessor
from parapix.features.effects.models import EffectsConfig
from parapix.features.effects.processor import EffectsProcessor

logger = get_logger(__name__)

STAGE_ORDER: List[str] = ["basic", "tone", "color", "effects"]


class AdjustmentPipeline:
    """
    Runs Basic -> Tone -> Color -> Effects over a working buffer, followed by
    the single terminal clamp.

    Basic, Tone and Color results are cached per stage while the source key
    stays the same, so moving a later slider does not recompute earlier
    stages. Effects are never cached (grain is stochastic).
    """

    def __init__(self) -> None:
        self.cache = PipelineCache()

    def build_stages(self, adjustments: Adjustments) -> List[Tuple[str, Any, IProcessor]]:
        basic = BasicConfig.from_adjustments(adjustments)
        tone = ToneConfig.from_adjustments(adjustments)
        color = ColorConfig.from_adjustments(adjustments)
        effects = EffectsConfig.from_adjustments(adjustments)
        return [
            ("basic", basic, BasicProcessor(basic)),
            ("tone", tone, ToneProcessor(tone)),
            ("color", color, ColorProcessor(color)),
            ("effects", effects, EffectsProcessor(effects)),
        ]

    def _run_stage(
        self,
        img: ImageBuffer,
        config: Any,
        cache_field: str,
        processor_fn: Callable[[ImageBuffer, PipelineContext], ImageBuffer],
        context: PipelineContext,
        pipeline_changed: bool,
    ) -> Tuple[ImageBuffer, bool]:
        """
        Executes one stage, reusing the cached result when neither this
        stage's parameters nor anything upstream changed.

        Returns:
            Tuple[ImageBuffer, bool]: (Resulting Image, is_changed flag)
        """
        if not context.source_key:
            return processor_fn(img, context), True

        conf_hash = calculate_config_hash(config)
        cached_entry = self.cache.get(cache_field)
        if (
            not pipeline_changed
            and cached_entry
            and cached_entry.config_hash == conf_hash
        ):
            logger.debug(f"Stage '{cache_field}' served from cache")
            return cached_entry.data, False

        new_img = processor_fn(img, context)
        self.cache.put(cache_field, CacheEntry(conf_hash, new_img))
        return new_img, True

    def process(
        self, img: ImageBuffer, adjustments: Adjustments, context: PipelineContext
    ) -> ImageBuffer:
        """
        Applies every stage to a float working buffer. The result is left
        unclamped.
        """
        img = ensure_image(img)

        # Keyless runs (exports) bypass the cache and leave it intact
        if context.source_key and context.source_key != self.cache.source_key:
            self.cache.clear()
            self.cache.source_key = context.source_key

        current_img = img
        pipeline_changed = False
        for name, config, processor in self.build_stages(adjustments):
            if name == "effects":
                # Neutral effects pass the buffer through without a copy
                current_img = processor.process(current_img, context)
                continue
            current_img, pipeline_changed = self._run_stage(
                current_img,
                config,
                name,
                processor.process,
                context,
                pipeline_changed,
            )
        return current_img

    def run(
        self,
        pixels: PixelBuffer,
        adjustments: Adjustments,
        source_key: str = "",
        rng: Optional[np.random.Generator] = None,
        context: Optional[PipelineContext] = None,
    ) -> PixelBuffer:
        """
        Full pixel path: RGBA in, RGBA out. Alpha is carried through
        untouched and the caller's buffer is never written to.
        """
        pixels = ensure_pixel_buffer(pixels)
        h, w = pixels.shape[:2]
        if context is None:
            context = PipelineContext(size=(h, w), source_key=source_key, rng=rng)

        img, alpha = split_alpha(pixels)
        img = self.process(img, adjustments, context)
        return merge_alpha(img, alpha)
