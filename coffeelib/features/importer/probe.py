"""
Lightweight media probing: pixel size and (video) duration.

Images are read with Pillow, videos with ffprobe and hachoir as the fallback
reader when ffprobe is missing or fails. Probing never fails an import: any
problem degrades to zero dimensions and an absent duration.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from hachoir.metadata import extractMetadata
from hachoir.parser import createParser
from hachoir.stream import InputStreamError
from PIL import Image, UnidentifiedImageError

from ...adapters.tools.ffprobe import FFProbe, display_size, parse_duration
from ...shared import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    width: int = 0
    height: int = 0
    duration: Optional[float] = None


EMPTY_PROBE = ProbeResult()


def read_image_size(path: str) -> tuple[int, int]:
    """Header-only read of the image size; (0, 0) when undecodable."""
    try:
        with Image.open(path) as img:
            return int(img.width), int(img.height)
    except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError):
        return 0, 0


def _hachoir_value(meta: Any, key: str) -> Any:
    try:
        if meta.has(key):
            return meta.get(key)
    except (KeyError, ValueError):
        pass
    # Containers (mp4, mkv) keep per-track values in sub-groups.
    iter_groups = getattr(meta, "iterGroups", None)
    if iter_groups is None:
        return None
    for group in iter_groups():
        try:
            if group.has(key):
                return group.get(key)
        except (KeyError, ValueError):
            continue
    return None


def read_video_fallback(path: str) -> dict[str, Any]:
    """
    Build an ffprobe-like dict from hachoir for video files.

    Returns an empty dict when parsing fails.
    """
    try:
        parser = createParser(path)
    except (InputStreamError, OSError, ValueError) as exc:
        logger.debug("hachoir could not open %s: %s", path, exc)
        return {}
    if parser is None:
        return {}
    try:
        with parser:
            meta = extractMetadata(parser)
    except Exception as exc:
        # hachoir raises a wide range of parser errors on malformed input.
        logger.debug("hachoir failed for %s: %s", path, exc)
        return {}
    if meta is None:
        return {}

    video_stream: dict[str, Any] = {}
    width = _hachoir_value(meta, "width")
    height = _hachoir_value(meta, "height")
    if width and height:
        video_stream = {"codec_type": "video", "width": int(width), "height": int(height)}

    format_info: dict[str, Any] = {}
    duration = _hachoir_value(meta, "duration")
    if isinstance(duration, timedelta):
        format_info["duration"] = str(duration.total_seconds())

    return {"format": format_info, "streams": [video_stream] if video_stream else [], "video_stream": video_stream}


def _size_and_duration(probe_data: dict[str, Any]) -> ProbeResult:
    stream = probe_data.get("video_stream") or {}
    width, height = display_size(stream) if stream else (0, 0)
    return ProbeResult(width, height, parse_duration(probe_data))


class MetadataProbe:
    def __init__(self, ffprobe: Optional[FFProbe] = None):
        self.ffprobe = ffprobe

    async def probe(self, path: str | Path, is_video: bool) -> ProbeResult:
        """
        Width, height and duration of one file.

        Never raises except for cancellation. Zero dimensions are not a failure.
        """
        path_s = str(path)
        if not is_video:
            width, height = await asyncio.to_thread(read_image_size, path_s)
            if width == 0 and height == 0:
                logger.debug("Image decode failed for %s", path_s)
            return ProbeResult(width, height, None)
        return await self._probe_video(path_s)

    async def _probe_video(self, path: str) -> ProbeResult:
        if self.ffprobe is not None and self.ffprobe.is_available():
            res = await self.ffprobe.aread(path)
            if res.ok and isinstance(res.data, dict):
                return _size_and_duration(res.data)
            logger.debug("ffprobe failed for %s (%s), trying fallback reader", path, res.error)

        data = await asyncio.to_thread(read_video_fallback, path)
        if not data:
            logger.warning("No metadata could be read from %s", path)
            return EMPTY_PROBE
        return _size_and_duration(data)
