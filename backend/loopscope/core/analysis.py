"""
Audio analysis orchestrator.

Tempo and key estimation are independent, CPU-bound and only read the
waveform, so they run side by side in a thread pool and are joined with
asyncio.gather. Either one failing fails the whole analysis.
"""
import asyncio
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Optional

import structlog

from loopscope.config import settings
from loopscope.core.errors import AnalysisError, EmptyAudioError
from loopscope.core.key_detection import detect_key
from loopscope.core.tempo import estimate_tempo
from loopscope.core.types import AudioAnalysis, KeyResult, Waveform

log = structlog.get_logger()

_pool = ThreadPoolExecutor(max_workers=max(2, settings.ANALYSIS_WORKERS))


def validate_waveform(waveform: Optional[Waveform]) -> None:
    """Reject buffers that cannot be analyzed, before any estimator runs."""
    if waveform is None:
        raise EmptyAudioError("Invalid audio buffer: no waveform")
    if waveform.num_channels == 0:
        raise EmptyAudioError("Invalid audio buffer: no channels")
    if waveform.length == 0:
        raise EmptyAudioError("Invalid audio buffer: zero-length audio")
    if waveform.sample_rate <= 0:
        raise EmptyAudioError(f"Invalid audio buffer: sample rate {waveform.sample_rate}")


async def analyze_audio(
    waveform: Waveform,
    *,
    tempo_estimator: Optional[Callable[[Waveform], float]] = None,
    key_detector: Optional[Callable[[Waveform], KeyResult]] = None,
    executor: Optional[Executor] = None,
) -> AudioAnalysis:
    """
    Run tempo and key estimation concurrently and merge the results.

    Raises:
        EmptyAudioError: waveform has no channels, frames or sample rate.
        AnalysisError:   either estimator failed.
    """
    validate_waveform(waveform)

    tempo_estimator = tempo_estimator or estimate_tempo
    key_detector    = key_detector or detect_key
    executor        = executor or _pool

    log.info("analysis_start",
             channels=waveform.num_channels,
             sample_rate=waveform.sample_rate,
             duration_sec=round(waveform.duration_sec, 3))

    loop = asyncio.get_running_loop()
    try:
        tempo, key_result = await asyncio.gather(
            loop.run_in_executor(executor, tempo_estimator, waveform),
            loop.run_in_executor(executor, key_detector, waveform),
        )
        analysis = AudioAnalysis.merge(key_result, float(tempo))
    except Exception as e:
        log.error("analysis_failed", error=str(e))
        raise AnalysisError(f"Failed to analyze audio file: {e}") from e

    if analysis.bpm < 1:
        log.error("analysis_failed", error="non-positive bpm", tempo=float(tempo))
        raise AnalysisError(f"Failed to analyze audio file: tempo {float(tempo)} rounds to {analysis.bpm} BPM")

    log.info("analysis_complete", **analysis.to_dict())
    return analysis
