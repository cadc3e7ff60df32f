"""
Preview collection for generated images.

Items are kept newest first. Local preview files attached to items are
released explicitly whenever an item leaves the collection.
"""

import itertools
import logging
from typing import Iterator, List, Optional

from AYA_Libs.ImageCodecLib.image_models import PreviewItem
from AYA_Libs.PipelineLib.image_transport import release_local_preview

logger = logging.getLogger(__name__)


class PreviewCollection:
    """
    Ordered collection of PreviewItems with a current selection.

    Example:
        >>> previews = PreviewCollection()
        >>> previews.add(PreviewItem(id="a", url="https://example.com/a.png"))
        >>> previews.current.id
        'a'
    """

    def __init__(self):
        self._items: List[PreviewItem] = []
        self._index = 0
        self._ids = itertools.count(1)

    def next_id(self) -> str:
        return f"preview-{next(self._ids)}"

    def add(self, item: PreviewItem) -> PreviewItem:
        """Insert at the front and make it current."""
        self._items.insert(0, item)
        self._index = 0
        return item

    def get(self, item_id: str) -> Optional[PreviewItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def attach_local_preview(self, item_id: str, handle: Optional[str]) -> bool:
        """
        Attach a local preview file to an item.

        If the item is gone, the handle is released immediately.
        """
        item = self.get(item_id)
        if item is None:
            release_local_preview(handle)
            return False
        if item.cached_local_url and item.cached_local_url != handle:
            release_local_preview(item.cached_local_url)
        item.cached_local_url = handle
        return True

    @property
    def index(self) -> int:
        if not self._items:
            return 0
        return max(0, min(self._index, len(self._items) - 1))

    @property
    def current(self) -> Optional[PreviewItem]:
        if not self._items:
            return None
        return self._items[self.index]

    def select(self, index: int) -> Optional[PreviewItem]:
        """Select by position; out-of-range values are clamped."""
        self._index = int(index)
        self._index = self.index
        return self.current

    def remove(self, item_id: str) -> bool:
        """Remove an item and release its local preview."""
        for position, item in enumerate(self._items):
            if item.id == item_id:
                del self._items[position]
                release_local_preview(item.cached_local_url)
                item.cached_local_url = None
                if position < self._index:
                    self._index -= 1
                self._index = self.index
                return True
        return False

    def clear(self) -> int:
        """Remove every item, releasing local previews. Returns the count removed."""
        count = len(self._items)
        for item in self._items:
            release_local_preview(item.cached_local_url)
            item.cached_local_url = None
        self._items = []
        self._index = 0
        if count:
            logger.debug(f"Cleared {count} previews")
        return count

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[PreviewItem]:
        return iter(list(self._items))
