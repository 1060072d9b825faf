"""Conversion API - start a job, poll its status, download the MP3.

  POST /convert              - validate the URL and start a job
  GET  /status/{job_id}     - poll until completed / error
  GET  /download/{job_id}   - stream the finished file

Thin layer over ConversionService; every status decision is made there.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ytaudio.api.v1.deps import get_service
from ytaudio.jobs.models import ConvertRequest, ConvertResponse, FileStatus
from ytaudio.jobs.service import ConversionService

router = APIRouter()

_FILE_STATUS_CODES = {
    FileStatus.NOT_FOUND: 404,
    FileStatus.NOT_READY: 409,
    FileStatus.UNAVAILABLE: 500,
}


@router.post("/convert", response_model=ConvertResponse)
async def convert(request: ConvertRequest, service: ConversionService = Depends(get_service)):
    """Start a conversion. Invalid URLs come back as status "error" with an empty id."""
    return await service.start_conversion(request.url)


@router.get("/status/{job_id}", response_model=ConvertResponse)
async def get_status(job_id: str, service: ConversionService = Depends(get_service)):
    return await service.get_status(job_id)


@router.get("/download/{job_id}")
async def download(job_id: str, service: ConversionService = Depends(get_service)):
    result = await service.get_file(job_id)
    if result.status is not FileStatus.READY:
        raise HTTPException(
            status_code=_FILE_STATUS_CODES[result.status],
            detail=f"Error: {result.message}",
        )
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
