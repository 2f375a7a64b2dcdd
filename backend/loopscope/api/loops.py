"""
Loops API: analysis for the upload flow.

Upload → validate format/size → decode (threadpool) → analyze (tempo + key
fan out to the analysis pool) → report. Nothing is persisted here; the
caller stores the report next to the file.
"""
import os

import structlog
from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from loopscope.config import settings
from loopscope.core.analysis import analyze_audio
from loopscope.core.errors import AnalysisError, AudioDecodeError
from loopscope.core.ingest import AudioDecoder
from loopscope.core.types import Waveform
from loopscope.core.waveform import summarize_channel
from loopscope.schemas.analysis import AudioAnalysisResponse, WaveformResponse

router = APIRouter()

ALLOWED  = {".wav", ".mp3", ".m4a", ".aac"}
_decoder = AudioDecoder()
log      = structlog.get_logger()


def _validate(file: UploadFile):
    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in ALLOWED:
        raise HTTPException(400, detail=f"Format not allowed: {ext}")

    # Browsers may append parameters, e.g. "audio/wav; codecs=1"
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in settings.ALLOWED_AUDIO_TYPES:
        raise HTTPException(400, detail=f"Content type not allowed: {content_type or 'missing'}")


async def _read_upload(file: UploadFile) -> bytes:
    raw = await file.read()
    if len(raw) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(413, detail=f"File size exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit.")
    return raw


async def _decode_upload(file: UploadFile) -> Waveform:
    _validate(file)
    raw = await _read_upload(file)
    try:
        return await run_in_threadpool(_decoder.decode, raw, file.filename or "audio.wav")
    except AudioDecodeError as e:
        log.warning("upload_decode_failed", filename=file.filename, error=str(e))
        raise HTTPException(422, detail=str(e))


# ── Endpoints ──────────────────────────────────────────────────────────────

@router.post("/analyze", response_model=AudioAnalysisResponse)
async def analyze_loop(file: UploadFile = File(...)):
    """Key, scale, BPM and key confidence for an uploaded loop."""
    waveform = await _decode_upload(file)
    try:
        analysis = await analyze_audio(waveform)
    except AnalysisError as e:
        log.error("loop_analysis_failed", filename=file.filename, error=str(e))
        raise HTTPException(500, detail="Failed to analyze audio file")

    return AudioAnalysisResponse.build(analysis, waveform)


@router.post("/waveform", response_model=WaveformResponse)
async def loop_waveform(
    file: UploadFile = File(...),
    bins: int = Query(default=settings.WAVEFORM_BINS, ge=1, le=4096),
):
    """Display peaks for the first channel of an uploaded loop."""
    waveform = await _decode_upload(file)
    peaks = await run_in_threadpool(summarize_channel, waveform, bins)
    return WaveformResponse(
        bins=bins,
        duration_sec=round(waveform.duration_sec, 3),
        sample_rate=waveform.sample_rate,
        peaks=[round(float(p), 4) for p in peaks],
    )
