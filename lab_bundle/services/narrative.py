"""XHTML narratives for resource ``text`` elements."""

LANGUAGE = "en-IN"
XHTML_NS = "http://www.w3.org/1999/xhtml"


def wrap_div(inner: str) -> str:
    return f'<div xmlns="{XHTML_NS}" lang="{LANGUAGE}" xml:lang="{LANGUAGE}">{inner}</div>'


def render(title: str, inner: str) -> dict[str, str]:
    """
    Build a generated narrative with ``<h3>title</h3>`` followed by ``inner``.

    Content is inserted verbatim; callers must not pass untrusted markup.
    """
    # TODO: escape title/inner once downstream consumers accept escaped entities.
    return {"status": "generated", "div": wrap_div(f"<h3>{title}</h3>{inner}")}
