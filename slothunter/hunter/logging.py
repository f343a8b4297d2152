# slothunter/hunter/logging.py
"""
Phase-aware logging for the hunter.
Every hunter component logs through one of the phases below so the console
output keeps a consistent icon and colour per concern.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from rich.markup import escape

from slothunter.utils.pretty_logs import pretty


class HunterPhase(Enum):
    """Hunter phases with associated colors and icons."""
    INITIALIZATION = ("init", "🔧", "bold magenta")
    AUCTION = ("auction", "🎯", "bold cyan")
    BIDDING = ("bidding", "💰", "bold green")
    CONNECTION = ("connection", "🔌", "bold blue")


class LogLevel(Enum):
    """Log importance levels; DEBUG lines are dropped unless the logger is verbose."""
    CRITICAL = ("CRITICAL", "bold red")
    HIGH = ("HIGH", "bold yellow")
    MEDIUM = ("MEDIUM", "bold white")
    LOW = ("LOW", "dim white")
    DEBUG = ("DEBUG", "dim gray")


class HunterLogger:
    """
    Phase-aware logger for hunter operations.
    """

    def __init__(self, component_name: str = "hunter", verbose: bool = False):
        self.component_name = component_name
        self.verbose = verbose

    def _format_phase_prefix(self, phase: HunterPhase, color: Optional[str] = None) -> str:
        _, icon, phase_color = phase.value
        c = color or phase_color
        return f"[{c}]{icon}[/{c}]"

    def _format_message(
        self,
        phase: HunterPhase,
        message: str,
        component: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        color: Optional[str] = None,
    ) -> str:
        prefix = self._format_phase_prefix(phase, color)
        comp = escape(f"[{component or self.component_name}]")

        formatted_msg = f"{prefix} {comp} {escape(message)}"

        if details:
            detail_strs = []
            for key, value in details.items():
                if isinstance(value, (int, float)):
                    detail_strs.append(f"{key}={value}")
                else:
                    detail_strs.append(f"{key}='{value}'")
            formatted_msg += escape(f" | {' | '.join(detail_strs)}")

        return formatted_msg

    def log(self, phase: HunterPhase, message: str,
            component: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        pretty.log(self._format_message(phase, message, component, details))

    def success(self, phase: HunterPhase, message: str,
                component: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        pretty.log(self._format_message(phase, message, component, details, color="bold green"))

    def warning(self, phase: HunterPhase, message: str,
                component: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        pretty.log(self._format_message(phase, message, component, details, color="bold yellow"))

    def error(self, phase: HunterPhase, message: str,
              component: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        pretty.log(self._format_message(phase, message, component, details, color="bold red"))

    def phase_banner(self, phase: HunterPhase, title: str, subtitle: str = "",
                     details: Optional[List[Tuple[str, Any]]] = None):
        phase_name, icon, phase_color = phase.value

        enhanced_subtitle = f"[{phase_name.upper()}] {subtitle}" if subtitle else f"[{phase_name.upper()}] Phase"
        if details:
            enhanced_subtitle += " | " + " | ".join(f"{k}: {v}" for k, v in details)

        pretty.banner(f"{icon} {title}", enhanced_subtitle, style=phase_color)

    def phase_panel(self, phase: HunterPhase, title: str, items: Iterable[Tuple[str, Any]],
                    color: Optional[str] = None):
        _, icon, phase_color = phase.value
        pretty.kv_panel(f"{icon} {title}", items, style=color or phase_color)

    def phase_table(self, phase: HunterPhase, title: str, columns: List[str], rows: List[List[Any]],
                    caption: Optional[str] = None):
        _, icon, _ = phase.value
        pretty.table(f"{icon} {title}", columns, rows, caption)

    # ---------------------- summaries ----------------------

    def configuration_summary(self, items: List[Tuple[str, Any]]):
        self.phase_panel(HunterPhase.INITIALIZATION, "Configuration", items)

    def winning_summary(self, height: int, rows: List[List[Any]], threshold: str, winner: bool):
        """Winners table for one block, plus our standing."""
        if rows:
            self.phase_table(
                HunterPhase.AUCTION, f"Winners at #{height}",
                ["Bidder", "Para", "Leases", "Value"], rows,
                caption=f"threshold {threshold}",
            )
        if winner:
            self.success(HunterPhase.AUCTION, "we are one of the winners", "ledger", {"block": height})


hunter_logger = HunterLogger("hunter")


def _emit(phase: HunterPhase, level: LogLevel, message: str, component: Optional[str],
          details: Optional[Dict[str, Any]]):
    if level is LogLevel.DEBUG and not hunter_logger.verbose:
        return
    hunter_logger.log(phase, message, component, details)


def log_init(level: LogLevel, message: str, component: Optional[str] = None,
             details: Optional[Dict[str, Any]] = None):
    """Log an initialization phase message."""
    _emit(HunterPhase.INITIALIZATION, level, message, component, details)


def log_auction(level: LogLevel, message: str, component: Optional[str] = None,
                details: Optional[Dict[str, Any]] = None):
    """Log an auction phase message."""
    _emit(HunterPhase.AUCTION, level, message, component, details)


def log_bidding(level: LogLevel, message: str, component: Optional[str] = None,
                details: Optional[Dict[str, Any]] = None):
    """Log a bidding phase message."""
    _emit(HunterPhase.BIDDING, level, message, component, details)


def log_connection(level: LogLevel, message: str, component: Optional[str] = None,
                   details: Optional[Dict[str, Any]] = None):
    """Log a connection phase message."""
    _emit(HunterPhase.CONNECTION, level, message, component, details)


def init_banner(title: str, subtitle: str = "", details: Optional[List[Tuple[str, Any]]] = None):
    hunter_logger.phase_banner(HunterPhase.INITIALIZATION, title, subtitle, details)
