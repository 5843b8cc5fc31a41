"""
Shadow pipeline as an explicit dependency graph

    subject, background ──> placement ──> mask ──┐
    depth source ─────────────────┴────> depth ──┴─> layers ──> shadow ──> composite

Every input and derived entity carries a revision. A stage re-runs only when
the tuple of its dependency revisions/values (its key) differs from the key
it last committed. Stages that wait on image decodes (placement, mask,
depth) capture a CancelToken at start and check it, plus their key, before
committing, so a superseded rebuild never writes stale state.
"""

import asyncio
import sys

import numpy as np

from .compositor import compose
from .depth_layers import slice_depth_layers
from .depth_sampler import depth_clipped_to_mask, depth_to_rgba, sample_depth
from .image_io import decode_image
from .mask import extract_mask, mask_matches
from .options import resolve_options
from .placement import compute_placement
from .projection import compute_light_params
from .raster import raster_size
from .shadow_renderer import ShadowRenderer

SOURCE_SLOTS = ("subject", "background", "depth")
STAGES = ("placement", "mask", "depth", "layers", "shadow", "composite")

# async stages whose in-flight work is superseded when a source changes
_SOURCE_DEPENDENTS = {
    "subject": ("placement", "mask"),
    "background": ("placement",),
    "depth": ("depth",),
}


class CancelToken:
    """Captured by an async rebuild at start; cancelled when superseded"""

    __slots__ = ("cancelled",)

    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


async def default_decoder(source):
    """Decode off the event loop; decoded arrays pass straight through"""
    if isinstance(source, np.ndarray):
        return decode_image(source)
    return await asyncio.to_thread(decode_image, source)


class ShadowPipeline:
    """
    Owns the inputs and every derived entity of one shadow composite

    Inputs are changed with set_subject / set_background / set_depth_source /
    set_options; refresh() brings all stale stages up to date and returns the
    current outputs.
    """

    def __init__(self, options=None, decoder=None):
        self._raw_options = dict(options or {})
        self.options = resolve_options(self._raw_options)
        self._decoder = decoder or default_decoder

        self._sources = {slot: None for slot in SOURCE_SLOTS}
        self._source_revs = {slot: 0 for slot in SOURCE_SLOTS}
        self._decode_tasks = {}
        self._images = {}
        self._tokens = {}
        self._keys = {}

        self.placement = None
        self.mask = None
        self.depth = None
        self.layers = []
        self.shadow = None
        self.composite = None
        self.light = compute_light_params(self.options.angle, self.options.elevation)
        self.versions = {stage: 0 for stage in STAGES}

        self._renderer = ShadowRenderer()

    # --- inputs ----------------------------------------------------------

    def set_subject(self, source):
        self._set_source("subject", source)

    def set_background(self, source):
        self._set_source("background", source)

    def set_depth_source(self, source):
        self._set_source("depth", source)

    def set_options(self, **changes):
        """Merge option changes (camelCase keys) and re-resolve"""
        previous = self.options
        merged = {**self._raw_options, **changes}
        # a value that fails to resolve leaves the current options untouched
        self.options = resolve_options(merged)
        self._raw_options = merged
        if self.options.calibration != previous.calibration:
            self._cancel("depth")

    def _set_source(self, slot, source):
        self._sources[slot] = source
        self._source_revs[slot] += 1
        self._decode_tasks.pop(slot, None)
        self._images.pop(slot, None)
        for stage in _SOURCE_DEPENDENTS[slot]:
            self._cancel(stage)
        if slot in ("subject", "background"):
            self._invalidate_placement()

    def _invalidate_placement(self):
        self._cancel("placement")
        self._cancel("mask")
        self._cancel("depth")
        self._keys.pop("placement", None)
        if self.placement is not None:
            self.placement = None
            self.versions["placement"] += 1

    # --- bookkeeping -----------------------------------------------------

    def _cancel(self, stage):
        token = self._tokens.pop(stage, None)
        if token is not None:
            token.cancel()

    def _begin(self, stage):
        self._cancel(stage)
        token = CancelToken()
        self._tokens[stage] = token
        return token

    def _is_current(self, stage, token, key, key_fn):
        if token.cancelled or key_fn() != key:
            sys.stderr.write(f"ShadowPipeline: discarding superseded {stage} rebuild\n")
            return False
        return True

    def _commit(self, stage, key, value, token=None):
        previous = getattr(self, stage)
        setattr(self, stage, value)
        self._keys[stage] = key
        if value is not None or previous is not None:
            self.versions[stage] += 1
        if token is not None and self._tokens.get(stage) is token:
            del self._tokens[stage]

    async def _decoded(self, slot):
        """Decoded image for a slot; concurrent callers share one decode task"""
        source = self._sources[slot]
        if source is None:
            return None
        rev = self._source_revs[slot]
        entry = self._decode_tasks.get(slot)
        if entry is None or entry[0] != rev:
            entry = (rev, asyncio.ensure_future(self._decoder(source)))
            self._decode_tasks[slot] = entry
        image = await entry[1]
        if self._source_revs[slot] == rev:
            self._images[slot] = (rev, image)
        return image

    def _image(self, slot):
        entry = self._images.get(slot)
        if entry is not None and entry[0] == self._source_revs[slot]:
            return entry[1]
        return None

    # --- dependency keys -------------------------------------------------

    def _placement_key(self):
        return (self._source_revs["subject"], self._source_revs["background"])

    def _mask_key(self):
        return (self._source_revs["subject"], self.versions["placement"])

    def _depth_key(self):
        return (self._source_revs["depth"], self.versions["placement"], self.options.calibration)

    def _layers_key(self):
        return (self.versions["mask"], self.versions["depth"], self.options.layer_count)

    def _shadow_key(self):
        o = self.options
        return (self.versions["placement"], self.versions["mask"], self.versions["layers"],
                o.angle, o.elevation, o.depth_strength, self._source_revs["background"])

    def _composite_key(self):
        return (self._source_revs["background"], self._source_revs["subject"],
                self.versions["placement"], self.versions["shadow"])

    # --- stages ----------------------------------------------------------

    async def _ensure_placement(self):
        key = self._placement_key()
        if self._keys.get("placement") == key:
            return
        token = self._begin("placement")

        if self._sources["subject"] is None or self._sources["background"] is None:
            self._commit("placement", key, None, token)
            return

        subject, background = await asyncio.gather(self._decoded("subject"), self._decoded("background"))
        if not self._is_current("placement", token, key, self._placement_key):
            return

        placement = compute_placement(raster_size(subject), raster_size(background))
        self._commit("placement", key, placement, token)

    async def _ensure_mask(self):
        key = self._mask_key()
        if self._keys.get("mask") == key:
            return
        token = self._begin("mask")

        placement = self.placement
        if placement is None or self._sources["subject"] is None:
            self._commit("mask", key, None, token)
            return

        subject = await self._decoded("subject")
        if not self._is_current("mask", token, key, self._mask_key):
            return

        self._commit("mask", key, extract_mask(subject, placement), token)

    async def _ensure_depth(self):
        key = self._depth_key()
        if self._keys.get("depth") == key:
            return
        token = self._begin("depth")

        placement = self.placement
        if placement is None or self._sources["depth"] is None:
            self._commit("depth", key, None, token)
            return

        depth_source = await self._decoded("depth")
        if not self._is_current("depth", token, key, self._depth_key):
            return

        buffer = sample_depth(depth_source, placement.size, self.options.calibration)
        self._commit("depth", key, buffer, token)

    def _ensure_layers(self):
        key = self._layers_key()
        if self._keys.get("layers") == key:
            return
        layers = []
        if mask_matches(self.mask, self.placement) and self.depth is not None:
            layers = slice_depth_layers(self.mask, self.depth, self.options.layer_count)

        previous = self.layers
        self.layers = layers
        self._keys["layers"] = key
        if layers or previous:
            self.versions["layers"] += 1

    def _ensure_shadow(self):
        key = self._shadow_key()
        if self._keys.get("shadow") == key:
            return

        background = self._image("background")
        if background is None or not mask_matches(self.mask, self.placement):
            # nothing consistent to render yet; keep the previous raster
            return

        light = compute_light_params(self.options.angle, self.options.elevation)
        shadow = self._renderer.render(
            self.mask, self.placement, raster_size(background), light,
            self.layers, self.options.depth_strength,
        )
        if shadow is None:
            return

        self.light = light
        self._commit("shadow", key, shadow)

    def _ensure_composite(self):
        key = self._composite_key()
        if self._keys.get("composite") == key:
            return
        background = self._image("background")
        if background is None:
            return

        subject = self._image("subject") if self.placement is not None else None
        self._commit("composite", key, compose(background, self.shadow, subject, self.placement))

    # --- driving ---------------------------------------------------------

    async def refresh(self):
        """
        Bring every stale stage up to date

        Mask and depth rebuild concurrently. Decode failures propagate to the
        caller; stages that depended on the failed decode keep their prior state.
        """
        await self._ensure_placement()
        await asyncio.gather(self._ensure_mask(), self._ensure_depth())
        self._ensure_layers()
        self._ensure_shadow()
        self._ensure_composite()
        return self.outputs()

    def outputs(self):
        """Current rasters for preview/export plus bookkeeping"""
        depth = self.depth
        return {
            "composite": self.composite,
            "shadow": self.shadow,
            "mask": self.mask,
            "depth": depth_to_rgba(depth) if depth is not None else None,
            "depth_masked": depth_clipped_to_mask(depth, self.mask),
            "placement": self.placement,
            "light": self.light,
            "layer_count": len(self.layers),
            "versions": dict(self.versions),
        }
