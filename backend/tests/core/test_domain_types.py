"""Domain Types — tests for closed enums and their explicit fallback branches."""

from appwizard.core.domain_types import (
    REQUIRED_FIELDS,
    ChangeType,
    ImageFormat,
    SessionState,
)


def test_change_type_parses_wire_values():
    assert ChangeType.parse("CSS_Variable_Change") is ChangeType.TEXT_VARIABLE
    assert (
        ChangeType.parse("ImageCollection_Image_Change")
        is ChangeType.IMAGE_COLLECTION_IMAGE
    )


def test_change_type_unknown_maps_to_unsupported():
    assert ChangeType.parse("Page_Title_Change") is ChangeType.UNSUPPORTED
    assert ChangeType.parse("") is ChangeType.UNSUPPORTED
    assert ChangeType.parse(None) is ChangeType.UNSUPPORTED


def test_change_type_is_case_sensitive():
    assert ChangeType.parse("css_variable_change") is ChangeType.UNSUPPORTED


def test_change_type_unsupported_literal_is_not_parsed_as_supported():
    assert ChangeType.parse("Unsupported") is ChangeType.UNSUPPORTED


def test_image_format_parses_each_wire_value():
    for raw, expected in [
        ("BMP", ImageFormat.BMP),
        ("GIF", ImageFormat.GIF),
        ("JPG", ImageFormat.JPG),
        ("PNG", ImageFormat.PNG),
        ("SVG", ImageFormat.SVG),
    ]:
        assert ImageFormat.parse(raw) is expected


def test_image_format_unknown_values():
    assert ImageFormat.parse("TIFF") is ImageFormat.UNKNOWN
    assert ImageFormat.parse("png") is ImageFormat.UNKNOWN
    assert ImageFormat.parse(None) is ImageFormat.UNKNOWN


def test_enums_are_str():
    assert isinstance(ChangeType.TEXT_VARIABLE, str)
    assert ImageFormat.PNG == "PNG"
    assert SessionState.OPEN == "open"


def test_required_fields_cover_supported_types_only():
    assert set(REQUIRED_FIELDS) == {
        ChangeType.TEXT_VARIABLE, ChangeType.IMAGE_COLLECTION_IMAGE,
    }
    assert "new_value" in REQUIRED_FIELDS[ChangeType.TEXT_VARIABLE]
    assert "object_name" in REQUIRED_FIELDS[ChangeType.IMAGE_COLLECTION_IMAGE]
