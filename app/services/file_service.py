"""
File service: stores uploads on disk and records them in ``files``.

Files are named on disk by their UUID so user-supplied names never touch
the filesystem path.
"""
import logging
from pathlib import Path
from uuid import UUID, uuid4

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.database import unit_of_work
from app.exceptions import BadRequestException, NotFoundException
from app.models import File

logger = logging.getLogger(__name__)


def to_file_view(file: File) -> dict:
    return {
        "uuid": str(file.uuid),
        "name": file.name,
        "mime_type": file.mime_type,
        "size": file.size,
        "created_at": file.created_at.isoformat() if file.created_at else None,
    }


def _write_bytes(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


async def get_file_model(db: AsyncSession, file_id: UUID) -> File:
    result = await db.execute(
        select(File).where(File.uuid == file_id).execution_options(populate_existing=True)
    )
    file = result.scalar_one_or_none()
    if file is None:
        raise NotFoundException("File is not found")
    return file


async def get_file(db: AsyncSession, file_id: UUID) -> dict:
    return to_file_view(await get_file_model(db, file_id))


async def create_file(db: AsyncSession, owner_id: int, upload: UploadFile) -> dict:
    """Persist *upload* for *owner_id* and return the new file's public dict."""
    content = await upload.read()
    if not content:
        raise BadRequestException("File is empty")

    file_uuid = uuid4()
    suffix = Path(upload.filename or "").suffix
    path = Path(settings.UPLOAD_DIR) / f"{file_uuid}{suffix}"
    await run_in_threadpool(_write_bytes, path, content)

    try:
        async with unit_of_work(db):
            file = File(
                uuid=file_uuid,
                user_id=owner_id,
                name=upload.filename or path.name,
                path=str(path),
                mime_type=upload.content_type,
                size=len(content),
            )
            db.add(file)
            await db.flush()
    except Exception:
        await run_in_threadpool(path.unlink, True)
        raise

    logger.info("File %s uploaded by user %s (%d bytes)", file_uuid, owner_id, len(content))
    return await get_file(db, file_uuid)
