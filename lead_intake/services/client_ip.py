# lead_intake/services/client_ip.py
from __future__ import annotations

import hashlib
from typing import Mapping, Sequence

# Identity used when no proxy header carries an address.
NO_IP = "noip"


def resolve_client_ip(headers: Mapping[str, str], header_names: Sequence[str]) -> str:
    """Return the client address from the first non-empty proxy header.

    Only the first comma-separated token is used, so for X-Forwarded-For
    this is the originating client rather than an intermediate proxy.
    """
    for name in header_names:
        raw = headers.get(name)
        if raw:
            return raw.split(",")[0].strip()
    return ""


def hash_ip(ip: str) -> str:
    return hashlib.sha256(ip.encode("utf-8")).hexdigest()


def client_fingerprint(headers: Mapping[str, str], header_names: Sequence[str]) -> str:
    """One-way identity for rate limiting; the raw address is never kept."""
    ip = resolve_client_ip(headers, header_names)
    return hash_ip(ip) if ip else NO_IP
