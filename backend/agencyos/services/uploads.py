"""
Checks shared by the image upload endpoints (organization logo, avatar).
"""

from fastapi import HTTPException, UploadFile, status


async def read_image_upload(file: UploadFile, max_bytes: int, label: str) -> bytes:
    """
    Read an uploaded image into memory.

    Raises 415 for non-image content types, 400 for an empty body and
    413 when the file is larger than max_bytes.
    """
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail={"code": "INVALID_FILE_TYPE", "message": f"{label} must be an image"},
        )

    data = await file.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "EMPTY_FILE", "message": "Uploaded file is empty"},
        )
    if len(data) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={"code": "FILE_TOO_LARGE", "message": f"{label} must be {limit_mb}MB or smaller"},
        )
    return data


def storage_unavailable(label: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"code": "STORAGE_UNAVAILABLE", "message": f"Could not store the {label.lower()}"},
    )
