"""Bundle narration outputs into a single ZIP download."""

import io
import json
import os
import zipfile
from typing import Iterable, Optional, Tuple

REPORT_NAME = "report.json"


def _unique_name(name: str, taken: set) -> str:
    if name not in taken:
        return name
    base, ext = os.path.splitext(name)
    n = 2
    while f"{base} ({n}){ext}" in taken:
        n += 1
    return f"{base} ({n}){ext}"


def build_zip(entries: Iterable[Tuple[str, bytes]], report: Optional[dict] = None) -> bytes:
    """Write ``(name, bytes)`` pairs, in order, into a deflated ZIP archive.

    Duplicate names get a " (2)" style suffix. When ``report`` is given it is
    stored as report.json next to the audio files.
    """
    buf = io.BytesIO()
    taken = set()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for name, data in entries:
            name = _unique_name(name, taken)
            taken.add(name)
            archive.writestr(name, data)
        if report is not None:
            archive.writestr(_unique_name(REPORT_NAME, taken), json.dumps(report, indent=2))
    return buf.getvalue()
