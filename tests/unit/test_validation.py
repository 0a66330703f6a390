from uuid import uuid4

import pytest

from src.components.links import (
    ICON_UPLOAD_POLICY,
    ORIGINAL_ICON_UPLOAD_POLICY,
    UploadedFile,
    validate_icon_payload,
    validate_reorder_payload,
    validate_service_patch,
    validate_service_payload,
    validate_upload_file,
    validate_user_link_patch,
    validate_user_link_payload,
)


def fields_of(errors):
    return {e.field for e in errors}


# --- Services ---


def test_service_payload_defaults_allow_original_icon():
    payload, errors = validate_service_payload({"name": "Twitter", "slug": "twitter"})

    assert errors == []
    assert payload.allow_original_icon is True
    assert payload.description is None


def test_service_payload_is_deterministic():
    data = {"name": " GitHub ", "slug": "github", "baseUrl": ""}

    assert validate_service_payload(data) == validate_service_payload(data)
    payload, _ = validate_service_payload(data)
    assert payload.name == "GitHub"
    assert payload.base_url is None


@pytest.mark.parametrize("slug", ["Twitter", "has space", "under_score", "émoji", ""])
def test_service_slug_pattern(slug):
    payload, errors = validate_service_payload({"name": "X", "slug": slug})

    assert payload is None
    assert "slug" in fields_of(errors)


def test_service_name_required():
    payload, errors = validate_service_payload({"slug": "x"})

    assert payload is None
    assert "name" in fields_of(errors)


def test_service_length_limits():
    _, errors = validate_service_payload(
        {"name": "n" * 51, "slug": "s" * 31, "description": "d" * 201}
    )

    assert {"name", "slug", "description"} <= fields_of(errors)


def test_service_base_url_must_be_http():
    _, errors = validate_service_payload(
        {"name": "X", "slug": "x", "baseUrl": "ftp://example.com"}
    )

    assert "baseUrl" in fields_of(errors) or "base_url" in fields_of(errors)


def test_service_unknown_key_rejected():
    payload, errors = validate_service_payload({"name": "X", "slug": "x", "colour": "red"})

    assert payload is None
    assert errors


def test_non_mapping_payload():
    payload, errors = validate_service_payload(["name", "slug"])

    assert payload is None
    assert errors[0].code == "invalid_payload"


def test_service_patch_keeps_unset_fields_unset():
    patch, errors = validate_service_patch({"isActive": False})

    assert errors == []
    assert patch.model_dump(exclude_unset=True) == {"is_active": False}


def test_service_patch_rejects_null_name():
    patch, errors = validate_service_patch({"name": None})

    assert patch is None
    assert "name" in fields_of(errors)


# --- Icons ---


def test_icon_payload_valid():
    service_id = uuid4()
    payload, errors = validate_icon_payload(
        {"name": "Bird", "serviceId": str(service_id), "style": "THREE_D",
         "colorScheme": "CUSTOM"}
    )

    assert errors == []
    assert payload.service_id == service_id


@pytest.mark.parametrize(
    "field,value",
    [("style", "SHINY"), ("colorScheme", "PINK"), ("serviceId", "not-a-uuid"), ("name", "")],
)
def test_icon_payload_rejects_bad_values(field, value):
    data = {"name": "Bird", "serviceId": str(uuid4()), "style": "FILLED",
            "colorScheme": "WHITE"}
    data[field] = value

    payload, errors = validate_icon_payload(data)

    assert payload is None
    assert errors


# --- User links ---


@pytest.mark.parametrize(
    "url",
    ["javascript:alert(1)", "data:text/html,hi", "vbscript:msgbox", "file:///etc/passwd",
     "example.com", "https://"],
)
def test_user_link_url_rejected(url):
    payload, errors = validate_user_link_payload({"serviceId": str(uuid4()), "url": url})

    assert payload is None
    assert "url" in fields_of(errors)


def test_user_link_payload_normalizes_blanks():
    payload, errors = validate_user_link_payload(
        {"serviceId": str(uuid4()), "url": "https://x.com/me", "iconId": "", "title": "  "}
    )

    assert errors == []
    assert payload.icon_id is None
    assert payload.title is None
    assert payload.use_original_icon is False


def test_user_link_title_and_description_limits():
    _, errors = validate_user_link_payload(
        {"serviceId": str(uuid4()), "url": "https://x.com", "title": "t" * 101,
         "description": "d" * 201}
    )

    assert {"title", "description"} <= fields_of(errors)


def test_user_link_patch_empty_icon_id_is_explicit_none():
    patch, errors = validate_user_link_patch({"iconId": ""})

    assert errors == []
    assert patch.model_dump(exclude_unset=True) == {"icon_id": None}


# --- Reorder ---


def test_reorder_items():
    a, b = uuid4(), uuid4()
    payload, errors = validate_reorder_payload(
        {"items": [{"id": str(a), "sortOrder": 0}, {"id": str(b), "sortOrder": 1}]}
    )

    assert errors == []
    assert [(u.id, u.sort_order) for u in payload.to_updates()] == [(a, 0), (b, 1)]


def test_reorder_links_key_takes_explicit_pairs():
    a, b = uuid4(), uuid4()
    payload, errors = validate_reorder_payload(
        {"links": [{"id": str(a), "sortOrder": 3}, {"id": str(b), "sortOrder": 0}]}
    )

    assert errors == []
    assert [(u.id, u.sort_order) for u in payload.to_updates()] == [(a, 3), (b, 0)]


def test_reorder_ids_use_position():
    a, b, c = uuid4(), uuid4(), uuid4()
    payload, _ = validate_reorder_payload({"ids": [str(c), str(a), str(b)]})

    assert [(u.id, u.sort_order) for u in payload.to_updates()] == [(c, 0), (a, 1), (b, 2)]


@pytest.mark.parametrize(
    "data",
    [
        {"items": []},
        {"ids": []},
        {},
        {"items": [{"id": str(uuid4()), "sortOrder": 0}], "ids": [str(uuid4())]},
        {"links": [{"id": str(uuid4()), "sortOrder": 0}],
         "items": [{"id": str(uuid4()), "sortOrder": 0}]},
        {"links": []},
    ],
)
def test_reorder_requires_exactly_one_non_empty_list(data):
    payload, errors = validate_reorder_payload(data)

    assert payload is None
    assert errors


@pytest.mark.parametrize("sort_order", [-1, 1.5, "2", True])
def test_reorder_sort_order_must_be_non_negative_int(sort_order):
    payload, errors = validate_reorder_payload(
        {"items": [{"id": str(uuid4()), "sortOrder": sort_order}]}
    )

    assert payload is None
    assert errors


def test_reorder_duplicate_ids_rejected():
    dup = str(uuid4())
    payload, errors = validate_reorder_payload({"ids": [dup, dup]})

    assert payload is None
    assert errors


# --- Uploads ---


def test_upload_accepts_png_icon():
    file = UploadedFile(filename="logo.png", content_type="image/png", data=b"\x89PNG")

    assert validate_upload_file(file, ICON_UPLOAD_POLICY) == []


def test_upload_too_large():
    file = UploadedFile(
        filename="big.svg",
        content_type="image/svg+xml",
        data=b"x" * (ORIGINAL_ICON_UPLOAD_POLICY.max_bytes + 1),
    )

    codes = {e.code for e in validate_upload_file(file, ORIGINAL_ICON_UPLOAD_POLICY)}

    assert codes == {"file_too_large"}


@pytest.mark.parametrize("name", ["../evil.svg", "a<b>.svg", 'quote".svg', "pipe|.svg"])
def test_upload_dangerous_filename(name):
    file = UploadedFile(filename=name, content_type="image/svg+xml", data=b"<svg/>")

    codes = {e.code for e in validate_upload_file(file, ICON_UPLOAD_POLICY)}

    assert "file_name_invalid" in codes


def test_upload_empty_file():
    file = UploadedFile(filename="x.svg", content_type="image/svg+xml", data=b"")

    codes = {e.code for e in validate_upload_file(file, ICON_UPLOAD_POLICY)}

    assert codes == {"file_required"}


def test_upload_extension_must_match_policy():
    file = UploadedFile(filename="logo.gif", content_type="image/svg+xml", data=b"<svg/>")

    codes = {e.code for e in validate_upload_file(file, ICON_UPLOAD_POLICY)}

    assert codes == {"file_extension_not_allowed"}
