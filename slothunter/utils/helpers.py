# slothunter/utils/helpers.py
from __future__ import annotations

import re
import struct
from typing import Any, Optional

_HTTP_URI = re.compile(r"^https?://[^\s/$.?#].[^\s]*$")
_WS_URI = re.compile(r"^wss?://[^\s/$.?#].[^\s]*$")
_SMTP_URI = re.compile(r"^[a-zA-Z0-9.-]+(:\d+)?$")

# `PalletId(*b"py/cfund")` under the `modl` type id.
_CROWDLOAN_PREFIX = b"modl" + b"py/cfund"


def check_http_uri(uri: str) -> bool:
    return bool(_HTTP_URI.match(uri or ""))


def check_ws_uri(uri: str) -> bool:
    return bool(_WS_URI.match(uri or ""))


def check_smtp_uri(uri: str) -> bool:
    return bool(_SMTP_URI.match(uri or ""))


def crowdloan_id_of(fund_index: int) -> str:
    """
    Account of the crowdloan fund with *fund_index*, i.e.
    `into_sub_account_truncating(fund_index)` of the crowdloan pallet id.
    """
    raw = _CROWDLOAN_PREFIX + struct.pack("<I", fund_index)
    return "0x" + raw.ljust(32, b"\x00").hex()


def normalize_hex(value: str) -> str:
    v = value.strip().lower()
    return v if v.startswith("0x") else f"0x{v}"


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(normalize_hex(value)[2:])


def safe_int(x: Any) -> Optional[int]:
    try:
        if isinstance(x, bool):
            return int(x)
        if isinstance(x, int):
            return x
        if isinstance(x, float):
            return int(x)
        if isinstance(x, str):
            s = x.strip().replace(",", "").replace("_", "")
            return int(s, 16) if s.lower().startswith("0x") else int(s)
    except ValueError:
        return None
    return None
