from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Tuple, Union

from pydantic import BaseModel

from smart_todo.models import Feature

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 300.0


class ResponseCache:
    """Short-lived memo of parse results keyed by (feature, normalized input).

    Entries expire `ttl_s` seconds after insertion; expiry is checked lazily on
    read. Entries are replaced wholesale and never mutated in place.
    """

    def __init__(self, ttl_s: float = DEFAULT_TTL_S, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: Dict[str, Tuple[float, BaseModel]] = {}

    @staticmethod
    def key(feature: Union[Feature, str], text: str) -> str:
        name = feature.value if isinstance(feature, Feature) else str(feature)
        return f"{name}:{text.strip().lower()}"

    def get(self, feature: Union[Feature, str], text: str) -> Optional[BaseModel]:
        k = self.key(feature, text)
        entry = self._entries.get(k)
        if entry is None:
            return None

        inserted_at, result = entry
        if self._clock() - inserted_at >= self.ttl_s:
            del self._entries[k]
            return None

        if "cached" in type(result).model_fields:
            return result.model_copy(update={"cached": True})
        return result

    def put(self, feature: Union[Feature, str], text: str, result: BaseModel) -> None:
        self._entries[self.key(feature, text)] = (self._clock(), result)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
