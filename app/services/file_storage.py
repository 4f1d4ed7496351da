"""
Local file storage for requirement attachments, invoices and generated
group documents.

Stored paths are relative and forward-slashed. Paths under
``DOCUMENTOS_PREFIJO`` live in ``DOCUMENTS_DIR``; everything else lives in
``UPLOADS_DIR``.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, NamedTuple

from app.config import get_settings

logger = logging.getLogger(__name__)

DOCUMENTOS_PREFIJO = "documentos/"


def _sanitize_filename(filename: str) -> str:
    """Return filename with spaces replaced by underscores and special chars removed.

    Args:
        filename: Original filename string.

    Returns:
        Sanitized filename safe for filesystem storage.
    """
    name = filename.replace(" ", "_")
    name = re.sub(r"[^\w.\-]", "", name)
    return name


def save_upload(
    raw_bytes: bytes,
    filename: str,
    uploads_dir: Path,
    username: str = "anonymous",
) -> Path:
    """Save raw bytes to a date-and-user-partitioned subdirectory.

    The destination path follows the pattern::

        uploads_dir/{year}/{month:02d}/{username}/{uuid4}_{sanitized_filename}

    Args:
        raw_bytes: File contents to persist.
        filename: Original filename supplied by the uploader.
        uploads_dir: Root directory for all uploaded files.
        username: Username of the uploader (used as subfolder).

    Returns:
        Absolute Path to the saved file.
    """
    now = datetime.now()
    safe_user = _sanitize_filename(username) or "anonymous"
    dest_dir = uploads_dir / str(now.year) / f"{now.month:02d}" / safe_user
    dest_dir.mkdir(parents=True, exist_ok=True)

    safe_name = _sanitize_filename(filename) or "archivo"
    dest_path = dest_dir / f"{uuid.uuid4()}_{safe_name}"
    dest_path.write_bytes(raw_bytes)
    return dest_path


def get_upload_relative_path(full_path: Path, uploads_dir: Path) -> str:
    """Return the path of full_path relative to uploads_dir as a forward-slash string.

    Args:
        full_path: Absolute path returned by :func:`save_upload`.
        uploads_dir: Root directory used when saving the file.

    Returns:
        Relative path string suitable for storing in the database,
        e.g. ``"2026/02/jperez/abc123_cotizacion.pdf"``.
    """
    return full_path.relative_to(uploads_dir).as_posix()


def guardar_archivo(raw_bytes: bytes, filename: str, username: str) -> str:
    """Persist an upload under ``UPLOADS_DIR`` and return its relative path."""
    uploads_dir = Path(get_settings().UPLOADS_DIR)
    full_path = save_upload(raw_bytes, filename, uploads_dir, username)
    logger.debug("guardar_archivo: %s (%d bytes)", full_path, len(raw_bytes))
    return get_upload_relative_path(full_path, uploads_dir)


def ruta_documento(nombre: str) -> tuple[Path, str]:
    """Return ``(absolute path, stored path)`` for a generated document."""
    documents_dir = Path(get_settings().DOCUMENTS_DIR)
    documents_dir.mkdir(parents=True, exist_ok=True)
    safe_name = _sanitize_filename(nombre)
    return documents_dir / safe_name, f"{DOCUMENTOS_PREFIJO}{safe_name}"


def ruta_absoluta(relativa: str) -> Path:
    settings = get_settings()
    if relativa.startswith(DOCUMENTOS_PREFIJO):
        return Path(settings.DOCUMENTS_DIR) / relativa[len(DOCUMENTOS_PREFIJO):]
    return Path(settings.UPLOADS_DIR) / relativa


def delete_upload(relativa: str) -> bool:
    """Remove a stored file; a missing or undeletable file is logged, not raised.

    Returns:
        True when a file was actually removed.
    """
    path = ruta_absoluta(relativa)
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("delete_upload: file already missing: %s", path)
        return False
    except OSError:
        logger.warning("delete_upload: could not remove %s", path, exc_info=True)
        return False
    logger.debug("delete_upload: removed %s", path)
    return True


class ArchivoSubido(NamedTuple):
    """An uploaded file already read into memory by the router."""

    nombre: str
    contenido: bytes


def guardar_archivos(archivos: Iterable[ArchivoSubido], username: str) -> list[tuple[str, str]]:
    """Persist several uploads; returns ``(original name, stored path)`` pairs."""
    return [(a.nombre, guardar_archivo(a.contenido, a.nombre, username)) for a in archivos]


def es_documento_compartido(relativa: str) -> bool:
    """True for generated group documents, which every member of the group shares."""
    return relativa.startswith(DOCUMENTOS_PREFIJO)
