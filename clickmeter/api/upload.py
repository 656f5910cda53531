"""File upload endpoint for click-track analysis."""

import logging
import os
import tempfile

from fastapi import APIRouter, File, HTTPException, UploadFile

from clickmeter.analysis.engine import AnalysisEngine
from clickmeter.analysis.models import InvalidAudioError
from clickmeter.api.schemas import AnalysisResponse, result_to_response
from clickmeter.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aac", ".aiff"}


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_file(file: UploadFile = File(...)):
    """Analyze an uploaded click-track recording."""
    suffix = ""
    if file.filename and "." in file.filename:
        suffix = "." + file.filename.rsplit(".", 1)[-1].lower()
        if suffix not in ALLOWED_EXTENSIONS:
            raise HTTPException(400, f"Unsupported format. Use: {', '.join(sorted(ALLOWED_EXTENSIONS))}")

    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")

    # librosa needs a file path for compressed formats
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
            tmp.write(content)
            tmp_path = tmp.name

        result = AnalysisEngine().analyze_file(tmp_path)
        return result_to_response(result)
    except InvalidAudioError as e:
        logger.info(f"Rejected upload {file.filename!r}: {e}")
        raise HTTPException(400, "Could not decode audio")
    except Exception:
        logger.exception(f"Analysis failed for {file.filename!r}")
        raise HTTPException(500, "Analysis failed")
    finally:
        if tmp_path:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
