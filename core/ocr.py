"""
OCR over uploaded code screenshots.

Uploads are staged to a temporary file that is removed when the request is
done with it, whether extraction succeeded or not.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import pytesseract
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class OCRError(RuntimeError):
    """Text extraction from an uploaded image failed."""


class OCRExtractor:
    def __init__(self, language: str = "eng", tesseract_cmd: str | None = None):
        self.language = language
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def extract(self, path: str | Path) -> str:
        try:
            with Image.open(path) as image:
                return pytesseract.image_to_string(image, lang=self.language) or ""
        except UnidentifiedImageError as exc:
            raise OCRError(f"Unsupported or corrupt image: {exc}") from exc
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as exc:
            raise OCRError(str(exc)) from exc

    async def extract_async(self, path: str | Path) -> str:
        return await asyncio.to_thread(self.extract, path)


@asynccontextmanager
async def staged_upload(upload: UploadFile, directory: str | Path) -> AsyncIterator[Path]:
    """Write ``upload`` to a temp file under ``directory``; delete it on exit."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix
    fd, name = tempfile.mkstemp(dir=directory, prefix="upload-", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            await upload.seek(0)
            shutil.copyfileobj(upload.file, fh)
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.exception("Could not remove staged upload %s", path)


async def extract_upload(extractor: OCRExtractor, upload: UploadFile, directory: str | Path) -> str:
    async with staged_upload(upload, directory) as path:
        text = await extractor.extract_async(path)
    logger.debug("OCR extracted %d characters from %s", len(text), upload.filename)
    return text
