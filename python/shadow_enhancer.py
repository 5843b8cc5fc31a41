#!/usr/bin/env python3
"""
Depth-aware shadow compositing entry point
Reads a JSON request on stdin, writes a JSON result on stdout
"""

import asyncio
import json
import sys

import numpy as np

from depth_shadow import ShadowPipeline, export_filename, rgba_to_base64

"""
Request:
    subjectImageBase64: cutout (PNG with alpha preferred)
    backgroundImageBase64: background image
    depthImageBase64: optional depth map aligned to the subject
    options: angle, elevation, depthStrength, invertDepth, depthGamma,
             layerCount, depthScale, depthOffsetX, depthOffsetY

Diagnostics go to stderr; stdout carries only the JSON result.
"""


def _maybe_base64(raster):
    return rgba_to_base64(raster) if raster is not None else None


def _shadow_stats(shadow):
    if shadow is None:
        return {"non_zero_pixels": 0, "mean_intensity": 0}
    alpha = shadow[:, :, 3]
    non_zero = int(np.sum(alpha > 0))
    return {
        "non_zero_pixels": non_zero,
        "mean_intensity": float(np.mean(alpha[alpha > 0])) if non_zero > 0 else 0,
    }


async def run_pipeline(subject_base64, background_base64, depth_base64=None, options=None):
    """Run one full pipeline pass and return its outputs"""
    pipeline = ShadowPipeline(options)
    pipeline.set_subject(subject_base64)
    pipeline.set_background(background_base64)
    if depth_base64:
        pipeline.set_depth_source(depth_base64)
    return await pipeline.refresh(), pipeline.options


def generate_shadow_composite(subject_base64, background_base64, depth_base64=None, options=None):
    """
    Main entry point: composite the subject over the background with a shadow

    Returns:
        Dict with base64 PNG outputs (composite, shadow, mask, depth views),
        the placement, the light parameters used and debug info
    """
    try:
        if not subject_base64 or not background_base64:
            raise ValueError("subjectImageBase64 and backgroundImageBase64 are required")

        outputs, resolved = asyncio.run(run_pipeline(subject_base64, background_base64, depth_base64, options))

        placement = outputs["placement"]
        light = outputs["light"]
        sys.stderr.write(f"generate_shadow_composite: placement={placement}, layers={outputs['layer_count']}, versions={outputs['versions']}\n")

        return {
            "ok": True,
            "compositeBase64": _maybe_base64(outputs["composite"]),
            "shadowLayerBase64": _maybe_base64(outputs["shadow"]),
            "maskBase64": _maybe_base64(outputs["mask"]),
            "depthBase64": _maybe_base64(outputs["depth"]),
            "depthMaskedBase64": _maybe_base64(outputs["depth_masked"]),
            "placement": placement.to_dict() if placement is not None else None,
            "shadowParams": {
                "angle": float(light["angle"]),
                "elevation": float(light["elevation"]),
                "k": float(light["k"]),
                "blur_px": int(light["blur_px"]),
                "dir": [float(v) for v in light["dir"]],
                "depth_strength": float(resolved.depth_strength),
            },
            "exportNames": {
                kind: export_filename(kind)
                for kind in ("composite", "shadow", "mask", "depth", "depth_masked")
            },
            "debug": {
                "algorithm": "depth_layers" if outputs["layer_count"] else "fallback",
                "layer_count": outputs["layer_count"],
                "versions": outputs["versions"],
                "shadow_stats": _shadow_stats(outputs["shadow"]),
            },
        }

    except Exception as e:
        return {
            "ok": False,
            "error": str(e)
        }


if __name__ == "__main__":
    # Read input from stdin
    input_data = json.loads(sys.stdin.read())

    result = generate_shadow_composite(
        input_data.get("subjectImageBase64"),
        input_data.get("backgroundImageBase64"),
        input_data.get("depthImageBase64"),
        input_data.get("options", {})
    )

    # Output result
    print(json.dumps(result))
