from __future__ import annotations

import glob
import ntpath
import os
import re

# \\host\C$\rest  or  //host/C$/rest
_SHARE_RE = re.compile(r"^(?:\\\\|//)[^\\/]+[\\/]([A-Za-z])\$(?P<rest>(?:[\\/].*)?)$")


def to_share(host: str, path: str) -> str:
    """Rewrite a local drive path so it is reached through the host's admin share.

    `C:\\data` on host `10.0.0.5` becomes `\\\\10.0.0.5\\C$\\data`.
    """
    rest = path.replace(":", "$").replace("/", "\\").lstrip("\\")
    return "\\\\" + host + "\\" + rest


def share_to_abs(path: str) -> str:
    """Inverse of `to_share`: `\\\\host\\C$\\data` -> `C:\\data`. Other paths pass through."""
    m = _SHARE_RE.match(path)
    if not m:
        return path
    rest = m.group("rest").replace("/", "\\") or "\\"
    return f"{m.group(1)}:{rest}"


def logical_key(path: str) -> str:
    """Canonical absolute path used to join the same object across inventories."""
    rewritten = share_to_abs(path)
    if rewritten != path:
        return ntpath.normpath(rewritten)
    return os.path.abspath(path)


def expand_globs(args: list[str]) -> list[str]:
    """Expand shell-style patterns; arguments matching nothing are kept as given."""
    out: list[str] = []
    for arg in args:
        matches = sorted(glob.glob(arg))
        out.extend(matches or [arg])
    return out
