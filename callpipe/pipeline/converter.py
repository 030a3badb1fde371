"""Offline conversion of buffered call audio to WAV using ffmpeg.

Twilio streams raw 8kHz mono mu-law with no container, which speech-to-text
services cannot decode. Each finished call is written to disk and transcoded
once; the artifacts are named after the stream id and removed by cleanup().
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from loguru import logger

from callpipe.config import AudioConfig
from callpipe.errors import ConversionError

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def artifact_stem(stream_id: str) -> str:
    """File-name-safe stem for a stream's temporary artifacts."""
    return "call-" + _UNSAFE_CHARS.sub("_", stream_id)


class AudioConverter:
    """Transcodes raw mu-law call audio into a WAV file with ffmpeg.

    Args:
        config: Input format, sample rate, channels, duration cap, ffmpeg
            binary and working directory.
    """

    def __init__(self, config: AudioConfig | None = None) -> None:
        self.config = config or AudioConfig()
        self.work_dir = Path(self.config.work_dir)

    def raw_path(self, stream_id: str) -> Path:
        return self.work_dir / f"{artifact_stem(stream_id)}.ulaw"

    def wav_path(self, stream_id: str) -> Path:
        return self.work_dir / f"{artifact_stem(stream_id)}.wav"

    def build_command(self, raw_path: Path, wav_path: Path) -> list[str]:
        """ffmpeg argv for one conversion."""
        cfg = self.config
        return [
            cfg.ffmpeg_path,
            "-y",
            "-f", cfg.input_format,
            "-ar", str(cfg.sample_rate),
            "-ac", str(cfg.channels),
            "-t", str(cfg.max_duration_seconds),
            "-i", str(raw_path),
            str(wav_path),
        ]

    async def convert(self, stream_id: str, audio: bytes) -> Path:
        """Persist ``audio`` and transcode it to WAV.

        Returns:
            Path to the WAV artifact.

        Raises:
            ConversionError: If ffmpeg cannot be started or exits non-zero.
        """
        raw_path = self.raw_path(stream_id)
        wav_path = self.wav_path(stream_id)

        self.work_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(raw_path.write_bytes, audio)
        logger.debug(f"[{stream_id}] Saved {len(audio)} bytes of raw audio to {raw_path}")

        cmd = self.build_command(raw_path, wav_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ConversionError(f"Could not start {cmd[0]}: {e}") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            tail = stderr.decode("utf-8", errors="replace").strip()[-500:]
            raise ConversionError(
                f"{cmd[0]} exited with code {process.returncode}",
                returncode=process.returncode,
                stderr=tail,
            )

        logger.info(f"[{stream_id}] WAV ready at {wav_path}")
        return wav_path

    def cleanup(self, stream_id: str) -> None:
        """Remove the stream's temporary artifacts, if any."""
        for path in (self.raw_path(stream_id), self.wav_path(stream_id)):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"[{stream_id}] Could not remove {path}: {e}")
