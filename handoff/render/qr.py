"""
Receive-URL visual codes.

Both renderers are pure: the same text always yields the same markup.
"""
import io

import qrcode
import qrcode.image.svg


def _build(text: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(text)
    qr.make(fit=True)
    return qr


def render_to_svg(text: str) -> str:
    """SVG markup fragment (no XML declaration) suitable for embedding."""
    img = _build(text).make_image(image_factory=qrcode.image.svg.SvgPathImage)
    buf = io.BytesIO()
    img.save(buf)
    markup = buf.getvalue().decode("utf-8").strip()
    if markup.startswith("<?xml"):
        markup = markup.split("?>", 1)[1].lstrip()
    return markup


def render_to_text(text: str) -> str:
    """Block-glyph rendering for terminals."""
    buf = io.StringIO()
    _build(text).print_ascii(out=buf, invert=True)
    return buf.getvalue()


RENDERERS = {
    "svg": render_to_svg,
    "text": render_to_text,
}
