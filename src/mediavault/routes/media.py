import logging
from typing import Annotated, List, Optional

from fastapi import Depends, File, Form, UploadFile
from fastapi.routing import APIRouter
from pydantic import AliasChoices, BaseModel, Field
from starlette.concurrency import run_in_threadpool

from mediavault.configs.config import Config
from mediavault.deps import get_app_config, get_upload_service
from mediavault.error_handling import MissingFileError, ValidationError
from mediavault.security.auth import require_api_key
from mediavault.services import IncomingFile, UploadService

logger = logging.getLogger("mediavault.routes")
router = APIRouter(tags=["media"])


class DeleteRequest(BaseModel):
    url: Optional[str] = Field(default=None, validation_alias=AliasChoices("url", "imageUrl", "path"))


async def _read_upload(file: UploadFile, service: UploadService) -> IncomingFile:
    # Starlette has already spooled the body; this only skips reading it back.
    # A hard request-size cap belongs to the server or proxy.
    service.validator.check_size(file.size)
    content = await file.read()
    return IncomingFile(
        content=content,
        filename=file.filename,
        content_type=file.content_type,
        declared_size=file.size,
    )


@router.post("/upload", dependencies=[Depends(require_api_key)])
async def upload_file(
    service: Annotated[UploadService, Depends(get_upload_service)],
    file: Annotated[Optional[UploadFile], File(description="The file to upload")] = None,
    image: Annotated[Optional[UploadFile], File(description="Legacy name for 'file'")] = None,
    folder: Annotated[Optional[str], Form(description="Target folder")] = None,
):
    """
    Upload one file into a folder.
    The file is validated, transcoded according to the deployment mode and
    stored under a generated name.
    """
    upload = file or image
    if upload is None:
        raise MissingFileError("No file provided")

    incoming = await _read_upload(upload, service)
    stored = await run_in_threadpool(service.upload, folder, incoming)
    return {"success": True, "data": stored.to_dict()}


@router.post("/upload/multiple", dependencies=[Depends(require_api_key)])
async def upload_multiple_files(
    service: Annotated[UploadService, Depends(get_upload_service)],
    files: Annotated[Optional[List[UploadFile]], File(description="The files to upload")] = None,
    images: Annotated[Optional[List[UploadFile]], File(description="Legacy name for 'files'")] = None,
    folder: Annotated[Optional[str], Form(description="Target folder")] = None,
):
    """
    Upload several files into one folder.
    The batch is all-or-nothing: the first failing file aborts it and nothing
    from it stays on disk.
    """
    uploads = files or images or []
    service.validator.validate_batch(len(uploads))

    incoming = [await _read_upload(upload, service) for upload in uploads]
    stored = await run_in_threadpool(service.upload_many, folder, incoming)
    return {"success": True, "data": [obj.to_dict() for obj in stored]}


@router.delete("/delete", dependencies=[Depends(require_api_key)])
async def delete_file(
    body: DeleteRequest,
    service: Annotated[UploadService, Depends(get_upload_service)],
):
    """Delete a stored file by its public URL. Deleting a missing file succeeds."""
    if not body.url:
        raise ValidationError("url is required")
    removed = await run_in_threadpool(service.delete, body.url)
    if not removed:
        logger.info(f"Delete of {body.url!r} was a no-op, file already absent")
    return {"success": True, "message": "File deleted" if removed else "File already absent"}


@router.get("/stats", dependencies=[Depends(require_api_key)])
async def get_stats(service: Annotated[UploadService, Depends(get_upload_service)]):
    """Per-folder file counts and byte totals."""
    stats = await run_in_threadpool(service.stats)
    return {"success": True, "data": stats.to_dict()}


@router.get("/limits")
async def get_upload_limits(config: Annotated[Config, Depends(get_app_config)]):
    """
    Current upload policy.
    Useful for frontends to know the limits before sending anything.
    """
    return {
        "success": True,
        "data": {
            "mode": config.media_mode.value,
            "maxFileSize": config.max_upload_bytes,
            "maxFilesPerUpload": config.max_files_per_upload,
            "allowedTypes": sorted(config.allowed_mime_types),
            "folders": config.folders,
            "defaultFolder": config.default_folder,
        },
    }
