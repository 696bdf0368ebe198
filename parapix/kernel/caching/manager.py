from typing import Dict, Optional
from parapix.kernel.caching.logic import CacheEntry


class PipelineCache:
    """
    Holds per-stage results for the ACTIVE working buffer.
    Reset whenever the source key changes.
    """

    def __init__(self) -> None:
        self.source_key: str = ""
        self.entries: Dict[str, CacheEntry] = {}

    def get(self, stage: str) -> Optional[CacheEntry]:
        return self.entries.get(stage)

    def put(self, stage: str, entry: CacheEntry) -> None:
        self.entries[stage] = entry

    def clear(self) -> None:
        self.entries.clear()
        self.source_key = ""
