"""
Local disk storage for documents uploaded as answers to infrastructure questions.

Uploads land in `<UPLOAD_DIR>/temp` first and are moved to `<UPLOAD_DIR>/bookings/<booking_id>` once the booking
they belong to exists.
"""

import logging
import os
import shutil
import time
from typing import Iterable, Optional

from fastapi import HTTPException, UploadFile
from starlette import status

import config
from util import generate_token

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'image/jpeg',
    'image/png',
    'text/plain',
    'application/zip',
    'application/x-zip-compressed',
}

MIME_TYPES = {
    '.pdf': 'application/pdf',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.xls': 'application/vnd.ms-excel',
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.txt': 'text/plain',
    '.zip': 'application/zip',
}


def upload_dir() -> str:
    return config.UPLOAD_DIR


def temp_upload_dir() -> str:
    return os.path.join(upload_dir(), 'temp')


def generate_secure_filename(original_name: str) -> str:
    """
    The original name is kept in the database only, never on disk.
    """
    extension = os.path.splitext(original_name or '')[1].lower()
    return f'{int(time.time() * 1000)}-{generate_token(8)}{extension}'


def save_temp_upload(upload: UploadFile) -> dict:
    """
    Validates and writes an uploaded file to the temp directory. Returns a file answer dict.
    """
    if upload.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail='Invalid file type. Only PDF, Word, Excel, images, and common file types are allowed.')

    os.makedirs(temp_upload_dir(), exist_ok=True)
    secure_filename = generate_secure_filename(upload.filename)
    path = os.path.join(temp_upload_dir(), secure_filename)

    size = 0
    with open(path, 'wb') as target:
        while chunk := upload.file.read(64 * 1024):
            size += len(chunk)
            if size > config.MAX_UPLOAD_SIZE:
                target.close()
                os.remove(path)
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='File too large')
            target.write(chunk)

    return {
        'type': 'file',
        'file_path': path,
        'original_name': upload.filename,
        'secure_filename': secure_filename,
    }


def is_temp_path(path: Optional[str]) -> bool:
    if not path:
        return False
    return os.path.abspath(path).startswith(os.path.abspath(temp_upload_dir()) + os.sep)


def move_file_to_storage(temp_path: str, booking_id: int, secure_filename: Optional[str] = None) -> Optional[str]:
    """
    Moves a temp upload into the booking's directory. Returns the new path, or None when the move failed.
    """
    target_dir = os.path.join(upload_dir(), 'bookings', str(booking_id))
    target_path = os.path.join(target_dir, secure_filename or os.path.basename(temp_path))

    try:
        os.makedirs(target_dir, exist_ok=True)
        shutil.move(temp_path, target_path)
    except OSError:
        logger.exception('Failed to move %s to storage for booking %s', temp_path, booking_id)
        return None

    return target_path


def cleanup_temp_files(paths: Iterable[str]):
    for path in paths:
        try:
            if path and os.path.exists(path):
                os.remove(path)
        except OSError:
            logger.exception('Error removing temporary file %s', path)


def get_file_url(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    relative = os.path.relpath(path, upload_dir())
    return '/uploads/' + relative.replace(os.sep, '/')


def get_mime_type(filename: str) -> str:
    return MIME_TYPES.get(os.path.splitext(filename)[1].lower(), 'application/octet-stream')
