import pytest

from ddx_viewer.conversion import formats
from ddx_viewer.conversion.errors import UnsupportedFormatError, ValidationError
from ddx_viewer.conversion.formats import FileFormat


def test_every_tag_maps_to_exactly_one_extension_and_back():
    extensions = [formats.resolve_extension(f) for f in FileFormat]
    assert len(set(extensions)) == len(FileFormat)
    for fmt in FileFormat:
        assert formats.resolve_tag(formats.resolve_extension(fmt)) is fmt


@pytest.mark.parametrize("value", [FileFormat.PNG, "png", "PNG", ".png", " Png "])
def test_is_supported_accepts_tags_and_extensions(value):
    assert formats.is_supported(value)


@pytest.mark.parametrize("value", ["xyz", "", ".", "webp", 42, None])
def test_is_supported_rejects_unknown(value):
    assert not formats.is_supported(value)


def test_resolve_tag_not_found_returns_none():
    assert formats.resolve_tag(".xyz") is None
    assert formats.resolve_tag("ddx") is FileFormat.DDX


def test_resolve_extension_unknown_raises_validation_error():
    with pytest.raises(UnsupportedFormatError) as exc:
        formats.resolve_extension("xyz")
    assert isinstance(exc.value, ValidationError)


def test_token_is_lowercase_extension_without_dot():
    desc = formats.descriptor(FileFormat.TIFF)
    assert desc.token == "tiff"
    assert not desc.token.startswith(".")


def test_source_support_uses_file_suffix():
    assert formats.is_source_supported("textures/photo.DDX")
    assert not formats.is_source_supported("photo.xyz")
    assert not formats.is_source_supported("no_extension")


def test_original_format_set_is_complete():
    names = {d.tag.name for d in formats.target_formats()}
    assert names == {"BMP", "DDS", "DDX", "HDR", "JPG", "JPEG", "PFM", "PNG", "PPM", "TGA", "TIF", "TIFF", "WMP"}
    assert {d.tag for d in formats.source_formats()} == set(FileFormat)
