"""
Photo catalog.

Minimal photo store the operation engine talks to: it resolves photo IDs
into PhotoRef records and keeps stored paths in sync after moves and undos.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ..core.types import PhotoRef
from .connection import session_scope
from .models import Photo

logger = logging.getLogger(__name__)


class PhotoCatalog:
    """SQLAlchemy-backed photo catalog."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def add_photo(
        self,
        path: Path,
        file_size: Optional[int] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        taken_at: Optional[datetime] = None,
    ) -> PhotoRef:
        """
        Register a photo, or return the existing record for the same path.

        Args:
            path: Path to the photo file
            file_size: Size in bytes (read from disk when omitted)
            latitude: Optional GPS latitude
            longitude: Optional GPS longitude
            taken_at: Optional capture time

        Returns:
            The stored photo
        """
        path_str = str(path)
        if file_size is None:
            file_size = Path(path).stat().st_size

        with session_scope(self.session_factory) as session:
            existing = session.scalars(
                select(Photo).where(Photo.path == path_str)
            ).first()
            if existing is not None:
                return self._to_ref(existing)

            photo = Photo(
                path=path_str,
                file_size=file_size,
                latitude=latitude,
                longitude=longitude,
                taken_at=taken_at,
                scanned_at=datetime.utcnow(),
            )
            session.add(photo)
            session.flush()
            ref = self._to_ref(photo)

        logger.debug(f"Added photo {ref.id}: {ref.source_path}")
        return ref

    def get_photo(self, photo_id: int) -> Optional[PhotoRef]:
        with session_scope(self.session_factory) as session:
            photo = session.get(Photo, photo_id)
            return self._to_ref(photo) if photo else None

    def get_photos_by_ids(self, photo_ids: Sequence[int]) -> List[PhotoRef]:
        """
        Resolve photo IDs in the order given.

        Unknown IDs are left out; comparing counts is up to the caller.
        """
        if not photo_ids:
            return []

        with session_scope(self.session_factory) as session:
            photos = session.scalars(
                select(Photo).where(Photo.id.in_(list(photo_ids)))
            ).all()
            by_id = {photo.id: self._to_ref(photo) for photo in photos}

        return [by_id[photo_id] for photo_id in photo_ids if photo_id in by_id]

    def list_photos(self) -> List[PhotoRef]:
        with session_scope(self.session_factory) as session:
            photos = session.scalars(select(Photo).order_by(Photo.id)).all()
            return [self._to_ref(photo) for photo in photos]

    def update_photo_path(self, photo_id: int, new_path: str) -> None:
        """
        Point a photo at its new location on disk.

        Raises:
            KeyError: If the photo is not in the catalog
        """
        with session_scope(self.session_factory) as session:
            photo = session.get(Photo, photo_id)
            if photo is None:
                raise KeyError(f"Photo not found in catalog: {photo_id}")
            photo.path = str(new_path)

    @staticmethod
    def _to_ref(photo: Photo) -> PhotoRef:
        return PhotoRef(id=photo.id, source_path=photo.path, file_size=photo.file_size)
