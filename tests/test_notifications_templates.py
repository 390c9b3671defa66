"""Unit tests for the email template renderer.

Covers:
- Subjects and bodies for every template kind
- Placeholder text when optional fields are missing
- Fallback to the generic template for unknown names
- HTML escaping of payload values in bodies (but not subjects)
- Deterministic output for a fixed timestamp
"""

from unittest.mock import patch

import pytest
from jinja2 import TemplateError

from notification_service.notifications.models import NotificationTemplateError
from notification_service.notifications.payloads import TemplateName
from notification_service.notifications.templates import FALLBACK_SUBJECT, TemplateRenderer

NOV_4_NOON_MILLIS = 1762257600000


@pytest.fixture(scope="module")
def renderer():
    return TemplateRenderer()


@pytest.mark.parametrize("template", list(TemplateName))
def test_every_template_renders_with_empty_data(renderer, template, fixed_now):
    """Missing fields never fail rendering."""
    rendered = renderer.render(template, {}, now=fixed_now)

    assert rendered.subject.strip()
    assert "<html" in rendered.html
    assert "OCRS" in rendered.html


@pytest.mark.parametrize("template", list(TemplateName))
def test_subjects_are_single_line(renderer, template):
    rendered = renderer.render(template, {"caseNumber": "MP-1", "firNumber": "FIR-1"})

    assert "\n" not in rendered.subject


def test_fir_filed(renderer):
    rendered = renderer.render(
        "firFiled",
        {"firNumber": "FIR-2024-001", "authorityName": "Insp. Sharma", "timestamp": NOV_4_NOON_MILLIS},
    )

    assert rendered.subject == "FIR Filed Successfully - OCRS"
    assert "FIR-2024-001" in rendered.html
    assert "Insp. Sharma" in rendered.html
    assert "04/11/2025, 5:30:00 pm" in rendered.html


def test_fir_filed_placeholders(renderer):
    rendered = renderer.render("firFiled", {})

    assert "N/A" in rendered.html
    assert "Pending Assignment" in rendered.html


def test_fir_filed_uses_reference_when_no_fir_number(renderer):
    rendered = renderer.render("firFiled", {"reference": "FIR-REF-9"})

    assert "FIR-REF-9" in rendered.html


def test_fir_update(renderer):
    rendered = renderer.render(
        "firUpdate",
        {
            "firNumber": "FIR-2024-001",
            "updateType": "Status Change",
            "newStatus": "UNDER_INVESTIGATION",
            "previousStatus": "PENDING",
            "authorityName": "Insp. Sharma",
            "authorityId": 17,
            "comment": "Witness statements collected",
        },
    )

    assert rendered.subject == "FIR Update - FIR-2024-001"
    for text in ("Status Change", "UNDER_INVESTIGATION", "PENDING", "Insp. Sharma", "17",
                 "Witness statements collected"):
        assert text in rendered.html


def test_fir_update_placeholders(renderer):
    rendered = renderer.render("firUpdate", {})

    assert rendered.subject == "FIR Update - OCRS"
    assert "Status Update" in rendered.html
    assert "Assigned Authority" in rendered.html
    assert "New Status" not in rendered.html
    assert "Comment" not in rendered.html


def test_status_update(renderer):
    rendered = renderer.render(
        "statusUpdate", {"reference": "REF-7", "newStatus": "RESOLVED", "comment": "Closed"}
    )

    assert rendered.subject == "Case Status Updated - REF-7"
    assert "RESOLVED" in rendered.html
    assert "Closed" in rendered.html


def test_status_update_placeholders(renderer):
    rendered = renderer.render("statusUpdate", {})

    assert "<strong>New Status:</strong> Updated" in rendered.html
    assert "N/A" in rendered.html


def test_missing_person_filed(renderer):
    rendered = renderer.render(
        "missingPersonFiled",
        {
            "caseNumber": "MP-2024-001",
            "missingPersonName": "Asha Rao",
            "age": 34,
            "lastSeenLocation": "MG Road",
            "description": "Blue saree",
        },
    )

    assert rendered.subject == "Missing Person Report Filed - MP-2024-001"
    for text in ("MP-2024-001", "Asha Rao", "34", "MG Road", "Blue saree"):
        assert text in rendered.html


def test_missing_person_filed_placeholders(renderer):
    rendered = renderer.render("missingPersonFiled", {})

    assert rendered.subject == "Missing Person Report Filed - OCRS"
    assert "Unknown" in rendered.html
    assert "Pending Assignment" in rendered.html
    assert "Description" not in rendered.html


def test_missing_person_update(renderer):
    rendered = renderer.render(
        "missingPersonUpdate",
        {"caseNumber": "MP-5", "newStatus": "FOUND", "missingPersonName": "Asha Rao"},
    )

    assert rendered.subject == "Missing Person Case Update - MP-5"
    assert "FOUND" in rendered.html
    assert "Asha Rao" in rendered.html


def test_missing_person_reassigned(renderer):
    rendered = renderer.render(
        "missingPersonReassigned",
        {
            "caseNumber": "MP-5",
            "newAuthorityName": "Insp. Khan",
            "previousAuthorityName": "Insp. Sharma",
        },
    )

    assert rendered.subject == "Missing Person Case Reassigned - MP-5"
    assert "Insp. Khan" in rendered.html
    assert "Insp. Sharma" in rendered.html


def test_generic_uses_subject_and_message(renderer):
    rendered = renderer.render("generic", {"subject": "Hello", "message": "Body text"})

    assert rendered.subject == "Hello"
    assert "Body text" in rendered.html


def test_generic_fallback_subject(renderer):
    rendered = renderer.render("generic", {})

    assert rendered.subject == FALLBACK_SUBJECT


@pytest.mark.parametrize("name", ["doesNotExist", "", None, "FIRFILED"])
def test_unknown_template_falls_back_to_generic(renderer, name):
    rendered = renderer.render(name, {"subject": "Fallback", "message": "Still delivered"})

    assert rendered.subject == "Fallback"
    assert "Still delivered" in rendered.html


def test_body_escapes_html(renderer):
    rendered = renderer.render("generic", {"subject": "A & B", "message": "<script>x</script>"})

    assert "<script>" not in rendered.html
    assert "&lt;script&gt;" in rendered.html
    assert rendered.subject == "A & B"


def test_subject_whitespace_collapsed(renderer):
    rendered = renderer.render("generic", {"subject": "Line one\n   line two"})

    assert rendered.subject == "Line one line two"


def test_rendering_is_idempotent_for_fixed_timestamp(renderer):
    data = {"firNumber": "FIR-1", "timestamp": NOV_4_NOON_MILLIS}

    assert renderer.render("firFiled", data) == renderer.render("firFiled", data)


def test_missing_timestamp_uses_reference_time(renderer, fixed_now):
    rendered = renderer.render("firFiled", {}, now=fixed_now)

    assert "04/11/2025, 5:30:00 pm" in rendered.html


def test_broken_template_raises_notification_error(renderer):
    with patch.object(renderer.env, "get_template", side_effect=TemplateError("bad syntax")):
        with pytest.raises(NotificationTemplateError, match="firFiled"):
            renderer.render("firFiled", {})


@pytest.mark.parametrize("value", ["9999-12-31T23:59:59Z", "0001-01-01T00:00:00+05:30"])
def test_timestamp_at_edge_of_datetime_range_uses_reference_time(renderer, fixed_now, value):
    rendered = renderer.render("firFiled", {"firNumber": "FIR-1", "timestamp": value}, now=fixed_now)

    assert "04/11/2025, 5:30:00 pm" in rendered.html
