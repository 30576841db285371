from fastapi import APIRouter, Depends, File, UploadFile
from typing import List

from lfap.core.config import settings
from lfap.models.user import User
from lfap.routers.auth_deps import get_current_user
from lfap.services.documents import store_supporting_documents

router = APIRouter(prefix="/supporting-documents", tags=["supporting-documents"])


@router.post("", status_code=201)
async def upload_supporting_documents(
    files: List[UploadFile] = File(default=[]),
    current_user: User = Depends(get_current_user)
):
    # Read at most one byte past the limit
    blobs = []
    for upload in files:
        blobs.append((upload.filename, await upload.read(settings.max_upload_bytes + 1)))
    return {"file_urls": store_supporting_documents(blobs)}
