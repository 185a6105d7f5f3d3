"""
Data models for pong0.

This module defines the challenge issued by ping0.cc, the credentials that
answer it, and the IP information record extracted from the final page.
"""

import json
from dataclasses import asdict, dataclass

ATTRIBUTION = "https://linux.do/u/amna"

JS1KEY_COOKIE = "js1key"
POW_COOKIE = "pow"


@dataclass(frozen=True)
class Challenge:
    """Nonce and difficulty read from the initial page."""

    nonce: str  # window.x1, 32 hex characters
    difficulty: str  # window.difficulty, required hash prefix
    js_path: str = "/js/main.js"


@dataclass(frozen=True)
class Credentials:
    """Answer to one challenge, sent back to the service as cookies."""

    js1key: str
    pow: str

    def as_cookies(self) -> dict[str, str]:
        return {JS1KEY_COOKIE: self.js1key, POW_COOKIE: self.pow}


@dataclass(frozen=True)
class InfoRecord:
    """
    IP information extracted from one ping0.cc result page.

    Field order is the serialization order; princess is always last.
    """

    ip: str
    ip_location: str = ""
    asn: str = ""
    asn_owner: str = ""
    asn_type: str = ""
    organization: str = ""
    org_type: str = ""
    longitude: str = ""
    latitude: str = ""
    ip_type: str = ""
    risk_value: str = ""
    native_ip: str = ""
    country_flag: str = ""
    princess: str = ATTRIBUTION

    def to_dict(self) -> dict[str, str]:
        """Ordered field-name to value mapping."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)


def error_payload(message: str) -> dict[str, str]:
    """Error body shared by the CLI and the HTTP server."""
    return {"error": message, "princess": ATTRIBUTION}
