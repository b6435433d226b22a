"""Reference photos of catalog entries: JPEG re-encode plus thumbnail."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Iterable

from PIL import Image, ImageOps
from sqlalchemy.orm import Session

from gestion_proyectos.config import get_settings
from gestion_proyectos.models import NormaRepo, NormaRepoEvidence
from gestion_proyectos.schemas.norma_repo import ReferenceImageRead
from gestion_proyectos.services import storage
from gestion_proyectos.services.evidence import UploadedImage

logger = logging.getLogger(__name__)

ENTITY = "normas_repo"
JPEG_QUALITY = 82
THUMB_WIDTH = 480
THUMB_QUALITY = 70


class ReferenceImageError(ValueError):
    """Upload rejected before anything was stored (caller returns 400)."""

    pass


class CatalogEntryNotFoundError(LookupError):
    pass


@dataclass
class EncodedImage:
    content: bytes
    mime_type: str
    extension: str
    thumbnail: bytes | None = None


def encode_reference_image(content: bytes, content_type: str) -> EncodedImage:
    """Re-encode to JPEG with EXIF orientation applied, plus a 480px-wide thumbnail.

    When Pillow cannot decode the bytes the original is kept and no thumbnail is made.
    """
    try:
        with Image.open(io.BytesIO(content)) as im:
            oriented = ImageOps.exif_transpose(im)
            if oriented.mode != "RGB":
                oriented = oriented.convert("RGB")
            full = io.BytesIO()
            oriented.save(full, format="JPEG", quality=JPEG_QUALITY)
            # thumbnail() never enlarges; narrow images keep their width
            oriented.thumbnail((THUMB_WIDTH, oriented.height))
            thumb = io.BytesIO()
            oriented.save(thumb, format="JPEG", quality=THUMB_QUALITY)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning("Re-encode failed, keeping original reference image: %s", e)
        return EncodedImage(content, content_type, storage.IMAGE_EXTENSIONS[content_type])
    return EncodedImage(full.getvalue(), "image/jpeg", ".jpg", thumb.getvalue())


def to_read(image: NormaRepoEvidence) -> ReferenceImageRead:
    return ReferenceImageRead(
        id=image.id,
        norma_repo_id=image.norma_repo_id,
        comentario=image.comentario,
        image_url=storage.public_url(image.image_path),
        thumb_url=storage.public_url(image.thumb_path) if image.thumb_path else None,
        mime_type=image.mime_type,
        size_bytes=image.size_bytes,
        created_at=image.created_at,
    )


def _validate(image: UploadedImage | None) -> str:
    if image is None or not image.content:
        raise ReferenceImageError("Imagen requerida")
    content_type = (image.content_type or "").lower()
    if content_type not in storage.IMAGE_EXTENSIONS:
        raise ReferenceImageError("Tipo de imagen no permitido (jpeg/png/webp)")
    settings = get_settings()
    if len(image.content) > settings.max_upload_bytes:
        raise ReferenceImageError(f"Archivo demasiado grande (límite {settings.max_upload_mb}MB)")
    return content_type


def add_reference_image(
    db: Session, norma_repo_id: int, image: UploadedImage | None, comentario: str | None = None
) -> NormaRepoEvidence:
    """Store a reference photo for a catalog entry.

    Raises ReferenceImageError for a missing or invalid image and
    CatalogEntryNotFoundError when the entry does not exist.
    """
    content_type = _validate(image)
    if db.get(NormaRepo, norma_repo_id) is None:
        raise CatalogEntryNotFoundError("Norma no encontrada")

    encoded = encode_reference_image(image.content, content_type)
    image_path = storage.save_upload(encoded.content, ENTITY, encoded.extension)
    thumb_path = None
    if encoded.thumbnail is not None:
        thumb_path = storage.save_upload(encoded.thumbnail, ENTITY, ".thumb.jpg")

    row = NormaRepoEvidence(
        norma_repo_id=norma_repo_id,
        comentario=(comentario or "").strip() or None,
        image_path=image_path,
        thumb_path=thumb_path,
        mime_type=encoded.mime_type,
        size_bytes=len(encoded.content),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Reference image %s stored for catalog entry %s", row.id, norma_repo_id)
    return row


def list_reference_images(db: Session, norma_repo_id: int) -> list[NormaRepoEvidence]:
    return (
        db.query(NormaRepoEvidence)
        .filter(NormaRepoEvidence.norma_repo_id == norma_repo_id)
        .order_by(NormaRepoEvidence.created_at.desc(), NormaRepoEvidence.id.desc())
        .all()
    )


def reference_files(db: Session, norma_repo_id: int) -> list[str]:
    """Stored image and thumbnail paths of every reference photo of an entry."""
    rows = (
        db.query(NormaRepoEvidence.image_path, NormaRepoEvidence.thumb_path)
        .filter(NormaRepoEvidence.norma_repo_id == norma_repo_id)
        .all()
    )
    return [path for row in rows for path in row if path]


def remove_reference_files(paths: Iterable[str | None]) -> int:
    """Best-effort removal. Returns how many files could not be removed."""
    failed = 0
    for path in paths:
        try:
            storage.remove_file(path)
        except OSError as e:
            failed += 1
            logger.warning("Could not remove reference file %s: %s", path, e)
    return failed


def delete_reference_image(db: Session, image_id: int) -> bool:
    row = db.get(NormaRepoEvidence, image_id)
    if row is None:
        return False
    paths = [row.image_path, row.thumb_path]
    db.delete(row)
    db.commit()
    remove_reference_files(paths)
    return True
