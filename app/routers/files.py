from pathlib import Path
from uuid import UUID

from fastapi import APIRouter, Depends, UploadFile
from fastapi.responses import FileResponse as FileDownload
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_current_user
from app.exceptions import NotFoundException
from app.models import User
from app.rate_limit import rate_limit
from app.schemas import FileResponse
from app.services import file_service

router = APIRouter(prefix="/api/v1/files", tags=["files"], dependencies=[Depends(rate_limit)])

@router.post("", status_code=201, response_model=FileResponse)
async def upload_file(
    file: UploadFile,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await file_service.create_file(db, user.id, file)

@router.get("/{file_id}", response_model=FileResponse)
async def get_file(file_id: UUID, db: AsyncSession = Depends(get_db)):
    return await file_service.get_file(db, file_id)

@router.get("/{file_id}/download")
async def download_file(file_id: UUID, db: AsyncSession = Depends(get_db)):
    file = await file_service.get_file_model(db, file_id)
    if not Path(file.path).is_file():
        raise NotFoundException("File is not found")
    return FileDownload(file.path, media_type=file.mime_type, filename=file.name)
