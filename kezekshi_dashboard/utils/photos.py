from typing import Any, Optional

PHOTO_KEYS = ("photo", "image", "data", "url")

def normalize_photo_url(payload: Any) -> Optional[str]:
    """Turn whatever the photo endpoints return into a usable URL.

    Strings are used as-is, objects are searched for photo/image/data/url.
    Bare base64 is wrapped into a JPEG data URL.
    """
    url = ""
    if isinstance(payload, str):
        url = payload
    elif isinstance(payload, dict):
        for key in PHOTO_KEYS:
            if key in payload:
                url = payload[key] or ""
                break
    if not isinstance(url, str):
        return None

    url = url.strip()
    if url.startswith('"'):
        url = url[1:]
    if url.endswith('"'):
        url = url[:-1]
    if not url:
        return None
    if not url.startswith("http") and not url.startswith("data:"):
        url = f"data:image/jpeg;base64,{url}"
    return url
