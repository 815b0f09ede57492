"""Tests for the photo catalog."""

import pytest


class TestPhotoCatalog:
    """Test catalog lookups and path updates."""

    def test_add_reads_size(self, catalog, tmp_path):
        """Test the file size is read from disk."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"x" * 42)

        photo = catalog.add_photo(path)

        assert photo.id > 0
        assert photo.source_path == str(path)
        assert photo.file_size == 42

    def test_add_same_path_twice(self, catalog, tmp_path):
        """Test re-adding a path returns the existing photo."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"data")

        first = catalog.add_photo(path)
        second = catalog.add_photo(path)

        assert first.id == second.id
        assert len(catalog.list_photos()) == 1

    def test_add_without_file(self, catalog):
        """Test explicit size skips the disk lookup."""
        photo = catalog.add_photo("/nowhere/a.jpg", file_size=10, latitude=1.5, longitude=2.5)

        assert photo.file_size == 10

    def test_get_photos_by_ids_keeps_order(self, catalog):
        """Test results follow the requested order and drop unknown IDs."""
        a = catalog.add_photo("/p/a.jpg", file_size=1)
        b = catalog.add_photo("/p/b.jpg", file_size=1)
        c = catalog.add_photo("/p/c.jpg", file_size=1)

        photos = catalog.get_photos_by_ids([c.id, 999, a.id])

        assert [p.id for p in photos] == [c.id, a.id]
        assert catalog.get_photos_by_ids([]) == []
        assert b.id not in [p.id for p in photos]

    def test_update_path(self, catalog):
        """Test updating where a photo lives."""
        photo = catalog.add_photo("/p/a.jpg", file_size=1)

        catalog.update_photo_path(photo.id, "/backup/a.jpg")

        assert catalog.get_photo(photo.id).source_path == "/backup/a.jpg"

    def test_update_unknown(self, catalog):
        """Test updating a photo that doesn't exist."""
        with pytest.raises(KeyError):
            catalog.update_photo_path(999, "/x.jpg")

    def test_get_unknown(self, catalog):
        """Test unknown photo is None."""
        assert catalog.get_photo(999) is None
