"""
Generation session.

Runs one full generation cycle against a host: capture the selection, call
the provider, collect the results as previews, and optionally place the
primary result back into the document. Also offers the follow-up actions on
the current preview (send, save, delete, clear).

Classes:
    CycleOutcome: What one generate() call produced
    GenerationSession: Orchestrates cycles for one host and settings dict
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from AYA_Libs.constants import AUTO_SEND_OFF, AUTO_SEND_SELECTION
from AYA_Libs.errors import ConfigurationError, NoImageProducedError
from AYA_Libs.ImageCodecLib.image_models import GenerationResult, PreviewItem, SaveOutcome
from AYA_Libs.PipelineLib.image_transport import materialize_previews
from AYA_Libs.PipelineLib.output_saver import DestinationPicker, save_image_ref
from AYA_Libs.PipelineLib.placement_engine import PlacementReport, place
from AYA_Libs.PipelineLib.preview_store import PreviewCollection
from AYA_Libs.PipelineLib.selection_capture import capture_selection_as_image, get_selection_bounds
from AYA_Libs.PipelineLib.settings_store import normalize_settings
from AYA_Libs.ProvidersLib.dispatch import (
    build_request,
    generate,
    normalize_provider,
    provider_api_key,
    provider_label,
)
from AYA_Libs.ProvidersLib.provider_registry import ProviderRegistry, get_default_registry

logger = logging.getLogger(__name__)


@dataclass
class CycleOutcome:
    result: GenerationResult
    items: List[PreviewItem] = field(default_factory=list)
    placement: Optional[PlacementReport] = None


class GenerationSession:
    """
    Orchestrates generation cycles for one host.

    Stages run strictly in order (capture, dispatch, previews, placement)
    and nothing is retried. Errors propagate to the caller; the message of
    the last failure is kept in `last_error`.

    Args:
        host: Host exposing the document surface
        settings: Settings dict (normalized on construction)
        registry: Provider registry (default registry if None)
        preview_dir: Directory for local preview files (system temp if None)
        http_session: Optional requests.Session for provider calls
    """

    def __init__(self, host: Any, settings: Optional[Dict[str, Any]] = None,
                 registry: Optional[ProviderRegistry] = None,
                 preview_dir: Optional[Path] = None, http_session: Any = None):
        self.host = host
        self.settings = normalize_settings(settings)
        self.registry = registry or get_default_registry()
        self.previews = PreviewCollection()
        self.preview_dir = preview_dir
        self.http_session = http_session
        self.last_error: Optional[str] = None

    @property
    def provider(self) -> str:
        return normalize_provider(self.settings.get("provider"), self.registry)

    def generate(self, prompt: str) -> CycleOutcome:
        """
        Run one generation cycle.

        Raises:
            ConfigurationError: Missing API key or empty prompt
            AyaError: Any stage failure, unchanged
        """
        self.last_error = None
        try:
            return self._generate(prompt)
        except Exception as e:
            self.last_error = str(e)
            raise

    def _generate(self, prompt: str) -> CycleOutcome:
        provider = self.provider
        api_key = provider_api_key(self.settings, provider)
        if not api_key:
            raise ConfigurationError(
                f"Set the {provider_label(provider, self.registry)} API key in settings first"
            )
        prompt = str(prompt or "").strip()
        if not prompt:
            raise ConfigurationError("Enter a prompt first")
        self.settings["last_prompt"] = prompt

        document = self.host.active_document
        source_doc_id = getattr(document, "id", None)
        region = capture_selection_as_image(self.host)

        request = build_request(self.settings, prompt, region, self.registry)
        result = generate(request, api_key, registry=self.registry, session=self.http_session)
        if not result.images:
            raise NoImageProducedError(provider, message="The response contained no usable image")

        items = [
            PreviewItem(
                id=self.previews.next_id(),
                url=url,
                source_doc_id=source_doc_id,
                captured_bounds=region.bounds,
            )
            for url in result.images
        ]
        for item in reversed(items):
            self.previews.add(item)
        self.previews.select(0)

        handles = materialize_previews(result.images, self.preview_dir)
        for item, handle in zip(items, handles):
            if handle:
                self.previews.attach_local_preview(item.id, handle)

        outcome = CycleOutcome(result=result, items=items)
        mode = self.settings.get("auto_send_mode", AUTO_SEND_OFF)
        if mode != AUTO_SEND_OFF:
            outcome.placement = self._place(items[0], mode)

        logger.info(f"Generation cycle finished with {len(items)} image(s), auto send '{mode}'")
        return outcome

    def _place(self, item: PreviewItem, mode: str) -> PlacementReport:
        if mode == AUTO_SEND_SELECTION:
            target = get_selection_bounds(self.host)
        else:
            target = item.captured_bounds
        return place(self.host, item.url, target)

    def send_current(self, mode: str) -> Optional[PlacementReport]:
        """Place the current preview at its capture bounds ("original") or the current selection."""
        item = self.previews.current
        if item is None:
            return None
        self.last_error = None
        try:
            return self._place(item, mode)
        except Exception as e:
            self.last_error = str(e)
            raise

    def save_current(self, choose_destination: DestinationPicker) -> Optional[SaveOutcome]:
        item = self.previews.current
        if item is None:
            return None
        self.last_error = None
        try:
            return save_image_ref(item.url, choose_destination)
        except Exception as e:
            self.last_error = str(e)
            raise

    def delete_current(self) -> bool:
        item = self.previews.current
        if item is None:
            return False
        return self.previews.remove(item.id)

    def clear_previews(self) -> int:
        return self.previews.clear()
