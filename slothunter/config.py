"""
slothunter/config.py: global constants
(process-wide knobs; the operator's bid configuration lives in configuration.py)
"""

from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ╭─────────────────────────── ENVIRONMENT ────────────────────────────╮
CONFIG_PATH: str = os.getenv("SLOTHUNTER_CONFIG", str(Path.home() / ".config" / "slothunter"))
# ╰────────────────────────────────────────────────────────────────────╯


# ╭───────────────────────────── AUCTION ──────────────────────────────╮
# Fixed by the runtime: every auction offers 8 consecutive lease periods.
LEASE_PERIODS_PER_AUCTION: int = 8
# Σ_{k=1..8} k contiguous sub-ranges of the 8-period window.
SLOT_RANGE_COUNT: int = 36
# ╰────────────────────────────────────────────────────────────────────╯


# ╭───────────────────────────── CHAIN ────────────────────────────────╮
BLOCK_TIME_SECONDS: int = int(os.getenv("BLOCK_TIME_SECONDS", "6"))
BLOCK_POLL_SECONDS: float = float(os.getenv("BLOCK_POLL_SECONDS", "2.0"))
RECONNECT_DELAY_SECONDS: float = float(os.getenv("RECONNECT_DELAY_SECONDS", "5"))
LIVENESS_TIMEOUT_SECONDS: float = float(os.getenv("LIVENESS_TIMEOUT_SECONDS", "10"))
# ╰────────────────────────────────────────────────────────────────────╯


# ╭──────────────────────── NOTIFICATION ──────────────────────────────╮
# Tender outcomes stop being mailed once this many dispatch failures pile up.
MAIL_RETRY_LIMIT: int = int(os.getenv("MAIL_RETRY_LIMIT", "5"))
MAIL_SUBJECT: str = "Slothunter"
SLACK_WEBHOOK_PREFIX: str = "https://hooks.slack.com/services/"
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
# ╰────────────────────────────────────────────────────────────────────╯


# ╭──────────────────────────── LOGGING (pretty) ──────────────────────╮
PRETTY_LOGS: bool = os.getenv("PRETTY_LOGS", "true").lower() == "true"
LOG_TOP_N: int = int(os.getenv("LOG_TOP_N", "36"))
MASK_ACCOUNTS: bool = os.getenv("MASK_ACCOUNTS", "false").lower() == "true"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
# ╰────────────────────────────────────────────────────────────────────╯
