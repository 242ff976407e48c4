"""Tests for ImageMetadata."""

from datetime import datetime, timezone

from ospry.image_metadata import ImageMetadata


class TestImageMetadata:
    """Tests for ImageMetadata class."""

    def test_from_dict(self, metadata_dict):
        """Test mapping a service image object."""
        metadata = ImageMetadata.from_dict(metadata_dict)

        assert metadata.id == 'img-1'
        assert metadata.url == 'https://img.example/i/abc'
        assert metadata.filename == 'cat.jpg'
        assert metadata.is_private is True
        assert metadata.is_claimed is False
        assert metadata.width == 100

    def test_time_created_parsed(self, metadata_dict):
        """Test timeCreated becomes an aware datetime."""
        metadata = ImageMetadata.from_dict(metadata_dict)

        assert metadata.time_created == datetime(2024, 1, 1, 12, 30, 0, 250000, tzinfo=timezone.utc)

    def test_missing_optional_fields(self):
        metadata = ImageMetadata.from_dict({'id': 'x', 'url': 'https://img.example/i/x'})

        assert metadata.time_created is None
        assert metadata.is_private is False
        assert metadata.size is None

    def test_to_dict(self, metadata_dict):
        """Test converting back to the service shape."""
        metadata = ImageMetadata.from_dict(metadata_dict)

        assert metadata.to_dict() == metadata_dict

    def test_to_dict_keeps_unknown_fields(self, metadata_dict):
        metadata_dict['colorSpace'] = 'srgb'

        data = ImageMetadata.from_dict(metadata_dict).to_dict()

        assert data['colorSpace'] == 'srgb'
