from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from portfolio.auth.deps import require_admin
from portfolio.auth.jwt import TokenClaims
from portfolio.uploads import upload_image
from portfolio.v1.envelope import DataEnvelope

router = APIRouter()


class ImageUploadRequest(BaseModel):
    base64: str = Field(min_length=1)
    mime_type: Literal["image/png", "image/jpeg", "image/gif", "image/webp"]


class ImageUploadResponse(BaseModel):
    url: str
    key: str


@router.post("/admin/uploads/image", response_model=DataEnvelope[ImageUploadResponse], status_code=201)
def admin_upload_image(payload: ImageUploadRequest, _admin: TokenClaims = Depends(require_admin)):
    uploaded = upload_image(payload.base64, payload.mime_type)
    return DataEnvelope(data=ImageUploadResponse(url=uploaded.url, key=uploaded.key))
