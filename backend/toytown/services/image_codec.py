"""Conversion between image references (data URL or remote URL) and raw bytes."""
import base64
import binascii
import re

import httpx

from toytown.core.errors import FetchError, MalformedDataUrlError, TransportError
from toytown.models.image import DEFAULT_MIME_TYPE, EncodedImage

_DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,(.+)$", re.DOTALL)
_REMOTE_SCHEMES = ("http://", "https://")


def is_data_url(source: str) -> bool:
    return source.startswith("data:")


def parse_data_url(source: str) -> tuple[str, bytes]:
    """Parse `data:<mime>;base64,<payload>` into (mime, bytes).

    Raises:
        MalformedDataUrlError: Pattern mismatch or invalid base64 payload.
    """
    match = _DATA_URL_RE.match(source)
    if match is None:
        raise MalformedDataUrlError("Invalid data URL")
    mime_type, payload = match.group(1), match.group(2)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedDataUrlError("Invalid base64 payload in data URL") from exc
    return mime_type, data


def encode_to_data_url(mime_type: str, data: bytes) -> str:
    return encode_image(mime_type, data).to_data_url()


def encode_image(mime_type: str, data: bytes) -> EncodedImage:
    return EncodedImage(
        mime_type=mime_type or DEFAULT_MIME_TYPE,
        data=base64.b64encode(data).decode("ascii"),
    )


async def decode_to_bytes(source: str, http: httpx.AsyncClient) -> tuple[str, bytes]:
    """Resolve a data URL or a fetchable URL into (mime, bytes).

    Data URLs are parsed locally and never touch the network. Remote
    references use the declared Content-Type, defaulting to image/png.

    Raises:
        MalformedDataUrlError: `source` is neither a valid data URL nor an
            http(s) URL.
        FetchError: The remote reference answered with a non-success status.
        TransportError: The remote reference could not be reached.
    """
    if is_data_url(source):
        return parse_data_url(source)
    if not source.startswith(_REMOTE_SCHEMES):
        raise MalformedDataUrlError("Image reference is neither a data URL nor an http(s) URL")

    try:
        resp = await http.get(source, follow_redirects=True)
    except httpx.TransportError as exc:
        raise TransportError(f"fetch input image failed: {exc}") from exc
    if not resp.is_success:
        raise FetchError(source, resp.status_code)
    content_type = resp.headers.get("content-type", "").split(";")[0].strip()
    return content_type or DEFAULT_MIME_TYPE, resp.content


async def fetch_encoded(source: str, http: httpx.AsyncClient) -> EncodedImage:
    mime_type, data = await decode_to_bytes(source, http)
    return encode_image(mime_type, data)
