"""Upload policy tests."""

import pytest

from assethub.services.file_validation import MB, get_asset_type_from_mime, validate_file


@pytest.mark.parametrize(
    "mime_type,filename,expected",
    [
        ("image/jpeg", "photo.jpg", "IMAGE"),
        ("video/mp4", "clip.mp4", "VIDEO"),
        ("application/pdf", "brief.pdf", "DOCUMENT"),
        ("audio/mpeg", "jingle.mp3", "AUDIO"),
        ("application/octet-stream", "chair.glb", "MODEL_3D"),
        ("application/octet-stream", "layout.psd", "DESIGN"),
        ("application/x-unknown", "notes.xyz", "OTHER"),
    ],
)
def test_asset_type_from_mime(mime_type, filename, expected):
    assert get_asset_type_from_mime(mime_type, filename) == expected


def test_image_within_limit_is_valid():
    result = validate_file("image/png", 150_000, "logo.png")
    assert result.valid
    assert result.error is None


def test_image_over_limit():
    result = validate_file("image/jpeg", 50 * MB + 1, "huge.jpg")
    assert not result.valid
    assert result.error == "File size exceeds 50MB limit"


def test_video_has_larger_limit():
    assert validate_file("video/mp4", 400 * MB, "clip.mp4").valid
    assert validate_file("video/mp4", 501 * MB, "clip.mp4").error == "File size exceeds 500MB limit"


def test_zero_size_rejected():
    result = validate_file("application/pdf", 0, "empty.pdf")
    assert result.error == "File size must be greater than zero"


def test_unsupported_type_rejected():
    result = validate_file("application/x-msdownload", 1000, "setup.exe")
    assert not result.valid
    assert result.error == "Unsupported file type"
