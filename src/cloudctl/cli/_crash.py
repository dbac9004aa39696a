"""Crash report capture.

Unexpected errors are written to the `crash` file in the config directory:
time of crash, error identity and a trimmed traceback in which frames from
installed libraries are shortened to their path below site-packages.
"""

from __future__ import annotations

import traceback
from datetime import datetime
from pathlib import Path

import cloudctl

_PACKAGE_ROOT = str(Path(cloudctl.__file__).resolve().parents[1]) + "/"
_SITE_PACKAGES = "site-packages/"
_MAX_TB_FRAMES = 50


def describe_error(exc: BaseException) -> str:
    """Error class (module-qualified unless builtin) and message."""
    cls = type(exc)
    name = cls.__qualname__
    if cls.__module__ != "builtins":
        name = f"{cls.__module__}.{name}"
    message = str(exc)
    return f"{name}: {message}" if message else name


def _shorten(filename: str) -> str:
    if _SITE_PACKAGES in filename:
        return filename.rsplit(_SITE_PACKAGES, 1)[1]
    if filename.startswith(_PACKAGE_ROOT):
        return filename[len(_PACKAGE_ROOT) :]
    return filename


def format_crash_report(exc: BaseException, now: datetime | None = None) -> str:
    now = now or datetime.now()
    lines = ["Time of crash:", f"  {now}", "", describe_error(exc), ""]

    frames = traceback.extract_tb(exc.__traceback__)[-_MAX_TB_FRAMES:]
    for frame in frames:
        lines.append(f"{_shorten(frame.filename)}:{frame.lineno} in {frame.name}")

    return "\n".join(lines) + "\n"


def write_crash_report(exc: BaseException, path: Path) -> Path:
    """Write the crash report for `exc`, replacing any previous one."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_crash_report(exc))
    return path
