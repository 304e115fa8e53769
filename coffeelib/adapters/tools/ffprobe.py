"""
FFprobe adapter for video metadata extraction.
"""
import asyncio
import json
import os
import shutil
from pathlib import Path
from typing import Any, List, Optional

from ...config import FFPROBE_TIMEOUT
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)


class FFProbe:
    """
    FFprobe wrapper for video metadata extraction.

    Never raises exceptions - always returns Result.
    """

    def __init__(self, bin_name: str = "ffprobe", timeout: Optional[float] = None):
        """
        Initialize FFprobe adapter.

        Args:
            bin_name: FFprobe binary name or path
            timeout: Command timeout in seconds
        """
        self.bin = bin_name
        self.timeout = float(timeout) if timeout is not None else float(FFPROBE_TIMEOUT)
        self._resolved_bin: Optional[str] = None
        self._available = self._check_available()

    def _resolve_executable(self, bin_name: str) -> Optional[str]:
        """
        Resolve and validate the ffprobe executable.

        Only a binary named ``ffprobe*`` is accepted, never an arbitrary command.
        """
        raw = (bin_name or "").strip()
        if not self._is_safe_executable_token(raw):
            return None
        resolved = self._resolve_executable_path(raw)
        if not resolved:
            return None
        return resolved if Path(resolved).name.lower().startswith("ffprobe") else None

    @staticmethod
    def _is_safe_executable_token(raw: str) -> bool:
        if not raw:
            return False
        if "\x00" in raw or "\n" in raw or "\r" in raw:
            return False
        if any(ch in raw for ch in ("&", "|", ";", ">", "<")):
            return False
        return True

    @staticmethod
    def _resolve_executable_path(raw: str) -> Optional[str]:
        resolved = shutil.which(raw)
        if resolved:
            return resolved
        try:
            candidate = Path(raw)
            if candidate.is_file():
                return str(candidate.resolve(strict=True))
        except (OSError, RuntimeError, ValueError):
            return None
        return None

    def _check_available(self) -> bool:
        resolved = self._resolve_executable(self.bin)
        if not resolved:
            return False
        self._resolved_bin = resolved
        return True

    def is_available(self) -> bool:
        """Check if ffprobe is available."""
        return self._available

    def _validate_probe_path(self, path: str) -> Result[str]:
        value = str(path or "").strip()
        if not value:
            return Result.Err(ErrorCode.INVALID_INPUT, "Empty probe path")
        if any(ch in value for ch in ("\x00", "\n", "\r")):
            return Result.Err(ErrorCode.INVALID_INPUT, "Invalid characters in probe path")
        if value.startswith("-"):
            return Result.Err(ErrorCode.INVALID_INPUT, "Probe path must not look like an option")
        return Result.Ok(value)

    def _build_ffprobe_cmd(self, path: str) -> List[str]:
        return [
            self._resolved_bin or self.bin,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            path,
        ]

    async def _spawn_ffprobe_process(self, cmd: List[str]) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            close_fds=os.name != "nt",
        )

    async def _communicate_with_timeout(
        self,
        process: asyncio.subprocess.Process,
        path: str,
    ) -> Result[tuple[str, str]]:
        try:
            stdout_b, stderr_b = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            logger.error("ffprobe timeout for %s", path)
            return Result.Err(ErrorCode.TIMEOUT, f"ffprobe timeout after {self.timeout}s", quality="degraded")
        stdout = (stdout_b or b"").decode("utf-8", errors="replace")
        stderr = (stderr_b or b"").decode("utf-8", errors="replace")
        return Result.Ok((stdout, stderr))

    async def aread(self, path: str) -> Result[dict]:
        """
        Read video metadata with ffprobe.

        Returns:
            Result with a dict holding 'format', 'streams' and 'video_stream'
        """
        if not self._available:
            return Result.Err(ErrorCode.TOOL_MISSING, "ffprobe not found in PATH", quality="none")

        valid = self._validate_probe_path(path)
        if not valid.ok:
            return Result.Err(valid.code, valid.error or "Invalid probe path")

        try:
            process = await self._spawn_ffprobe_process(self._build_ffprobe_cmd(str(valid.data)))
            communicated = await self._communicate_with_timeout(process, path)
            if not communicated.ok or communicated.data is None:
                return Result.Err(
                    communicated.code or ErrorCode.FFPROBE_ERROR,
                    communicated.error or "ffprobe communication failed",
                    **(communicated.meta or {}),
                )
            stdout, stderr = communicated.data
            return self._parse_ffprobe_output(stdout, stderr, process.returncode, path)
        except json.JSONDecodeError as e:
            logger.error("ffprobe JSON parse error: %s", e)
            return Result.Err(ErrorCode.PARSE_ERROR, f"Failed to parse ffprobe output: {e}", quality="degraded")
        except OSError as e:
            logger.error("ffprobe could not be started: %s", e)
            return Result.Err(ErrorCode.FFPROBE_ERROR, str(e), quality="degraded")

    def _parse_ffprobe_output(
        self,
        stdout: str,
        stderr: str,
        returncode: Optional[int],
        path: str,
    ) -> Result[dict]:
        if returncode != 0:
            stderr_msg = stderr.strip()
            logger.warning("ffprobe error for %s: %s", path, stderr_msg)
            return Result.Err(ErrorCode.FFPROBE_ERROR, stderr_msg or "ffprobe command failed", quality="degraded")
        if not stdout.strip():
            logger.warning("ffprobe returned empty output for %s", path)
            return Result.Err(ErrorCode.FFPROBE_ERROR, "No ffprobe output", quality="degraded")
        data = json.loads(stdout)
        if not isinstance(data, dict):
            return Result.Err(ErrorCode.PARSE_ERROR, "Invalid ffprobe output format", quality="degraded")
        streams = data.get("streams") or []
        result = {
            "format": data.get("format") or {},
            "streams": streams,
            "video_stream": self._find_video_stream(streams),
        }
        return Result.Ok(result, quality="full")

    @staticmethod
    def _find_video_stream(streams: list) -> dict:
        """First video stream that is not an embedded cover picture."""
        for stream in streams:
            if not isinstance(stream, dict) or stream.get("codec_type") != "video":
                continue
            disposition = stream.get("disposition") or {}
            if disposition.get("attached_pic"):
                continue
            return stream
        return {}


def stream_rotation(stream: dict[str, Any]) -> int:
    """
    Rotation in degrees applied at presentation time, normalized to 0..359.

    Older ffprobe builds report ``tags.rotate``; newer ones a display matrix in
    ``side_data_list``.
    """
    raw: Any = None
    tags = stream.get("tags") or {}
    if isinstance(tags, dict) and tags.get("rotate") not in (None, ""):
        raw = tags.get("rotate")
    else:
        for side in stream.get("side_data_list") or []:
            if isinstance(side, dict) and side.get("rotation") not in (None, ""):
                raw = side.get("rotation")
                break
    try:
        return int(round(float(raw))) % 360 if raw is not None else 0
    except (TypeError, ValueError):
        return 0


def display_size(stream: dict[str, Any]) -> tuple[int, int]:
    """Coded width/height composed with the rotation, as the frame is shown."""
    try:
        width = abs(int(stream.get("width") or 0))
        height = abs(int(stream.get("height") or 0))
    except (TypeError, ValueError):
        return 0, 0
    if stream_rotation(stream) in (90, 270):
        return height, width
    return width, height


def parse_duration(probe_data: dict[str, Any]) -> Optional[float]:
    """Container duration, falling back to the video stream's own duration."""
    candidates = [
        (probe_data.get("format") or {}).get("duration"),
        (probe_data.get("video_stream") or {}).get("duration"),
    ]
    for raw in candidates:
        if raw in (None, "", "N/A"):
            continue
        try:
            value = float(raw)
        except (TypeError, ValueError):
            continue
        if value >= 0:
            return value
    return None
