import asyncio
import logging
import math
from math import gcd
from typing import Iterator

import numpy as np
from scipy.signal import resample_poly

from voice_core.config import PCM_BYTES_PER_SEC, PCM_SAMPLE_RATE, SPEAKING_TAIL_SEC, TTS_CHUNK_BYTES

logger = logging.getLogger("voice_interview.services.audio")


class AudioDecodeError(RuntimeError):
    pass


def resample_pcm16(pcm: bytes, src_rate: int, dst_rate: int = PCM_SAMPLE_RATE) -> bytes:
    """Mono little-endian PCM16 in, mono PCM16 at ``dst_rate`` out."""
    if not pcm:
        return b""
    if len(pcm) % 2:
        pcm = pcm[:-1]
    if src_rate == dst_rate:
        return bytes(pcm)

    samples = np.frombuffer(pcm, dtype="<i2").astype(np.float32)
    factor = gcd(int(src_rate), int(dst_rate))
    resampled = resample_poly(samples, up=dst_rate // factor, down=src_rate // factor)
    return np.clip(np.round(resampled), -32768, 32767).astype("<i2").tobytes()


async def decode_to_pcm16(encoded: bytes, sample_rate: int = PCM_SAMPLE_RATE) -> bytes:
    """Decode any ffmpeg-readable container (MP3 from the neural voice) to mono PCM16."""
    if not encoded:
        return b""
    try:
        process = await asyncio.create_subprocess_exec(
            "ffmpeg",
            "-hide_banner",
            "-loglevel", "error",
            "-i", "pipe:0",
            "-f", "s16le",
            "-acodec", "pcm_s16le",
            "-ar", str(sample_rate),
            "-ac", "1",
            "pipe:1",
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise AudioDecodeError("ffmpeg is not installed") from exc

    stdout, stderr = await process.communicate(input=encoded)
    if process.returncode != 0:
        raise AudioDecodeError(f"ffmpeg exited with {process.returncode}: {stderr.decode(errors='ignore')[:200]}")
    return stdout


def chunk_pcm(pcm: bytes, size: int = TTS_CHUNK_BYTES) -> Iterator[bytes]:
    size = max(2, size - size % 2)
    for offset in range(0, len(pcm), size):
        yield pcm[offset:offset + size]


def play_duration_ms(
    total_bytes: int,
    bytes_per_sec: int = PCM_BYTES_PER_SEC,
    tail_sec: float = SPEAKING_TAIL_SEC,
) -> int:
    return int(math.ceil(total_bytes * 1000 / bytes_per_sec)) + int(round(tail_sec * 1000))
