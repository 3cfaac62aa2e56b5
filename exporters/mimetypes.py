from __future__ import annotations

import mimetypes
from typing import Mapping

# Preferred extensions where the platform table picks an unusual one or has no entry
EXTENSION_OVERRIDES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "video/mp4": "mp4",
    "video/3gpp": "3gp",
    "audio/3gpp": "3gp",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/aac": "aac",
    "audio/ogg": "ogg",
    "text/plain": "txt",
    "text/x-signal-plain": "txt",
    "text/x-vcard": "vcf",
    "application/x-signal-view-once": "bin",
}


class MimeTypes:
    """Content-type to file extension lookup.

    Overrides are consulted first, then the platform's mimetypes registry.
    """

    def __init__(self, overrides: Mapping[str, str] | None = None):
        table = EXTENSION_OVERRIDES if overrides is None else overrides
        self._overrides = {key.lower(): value for key, value in table.items()}

    def get_extension(self, content_type: str | None) -> str:
        if not content_type:
            return ""
        # parameters such as '; charset=utf-8' are not part of the lookup key
        key = content_type.split(";", 1)[0].strip().lower()
        if key in self._overrides:
            return self._overrides[key]
        guessed = mimetypes.guess_extension(key)
        return guessed.lstrip(".") if guessed else ""
