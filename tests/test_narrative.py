"""Tests for XHTML narrative rendering."""

from lab_bundle.services.narrative import render


def test_render_wraps_title_and_markup():
    text = render("Patient", "<p>Asha</p>")
    assert text == {
        "status": "generated",
        "div": (
            '<div xmlns="http://www.w3.org/1999/xhtml" lang="en-IN" xml:lang="en-IN">'
            "<h3>Patient</h3><p>Asha</p></div>"
        ),
    }


def test_render_does_not_escape():
    text = render("A & B", "<b>x</b>")
    assert "<h3>A & B</h3><b>x</b>" in text["div"]
