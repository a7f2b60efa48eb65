"""Extract an image URL from pasted HTML.

Clipboard HTML from browsers is usually a fragment wrapped in a full
document.  Only the first element child of ``<body>`` is considered:
a paste is treated as an image paste when that element is an ``<img>``.
"""

from __future__ import annotations

from selectolax.lexbor import LexborHTMLParser


def first_image_src(markup: str) -> str | None:
    """Return the ``src`` of the first body element if it is an ``<img>``.

    Leading whitespace text nodes are skipped; any other leading node
    (text, ``<p>``, ``<a>``, ...) makes the paste a non-image paste.

    Returns
    -------
    str | None
        The stripped ``src`` value, or ``None`` when the first element is
        not an image or has no ``src``.
    """
    if not markup or not markup.strip():
        return None

    tree = LexborHTMLParser(markup)
    body = tree.body
    if body is None:
        return None

    node = body.child
    while node is not None:
        if node.tag == "-text" and not (node.text_content or "").strip():
            node = node.next
            continue
        if node.tag == "-comment":
            node = node.next
            continue
        break

    if node is None or node.tag != "img":
        return None

    src = (node.attributes.get("src") or "").strip()
    return src or None
