# ====================================================================== #
# slothunter/utils/pretty_logs.py
# Rich console output for the hunter; plain text when PRETTY_LOGS=false
# (e.g. under journald, where box drawing only adds noise).
# ====================================================================== #

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from slothunter.config import LOG_TOP_N, MASK_ACCOUNTS, PRETTY_LOGS


def mask(account: str) -> str:
    """`0x1234…abcd` when MASK_ACCOUNTS is on; accounts are otherwise printed whole."""
    if not MASK_ACCOUNTS or not account or len(account) < 12:
        return account
    return f"{account[:6]}…{account[-4:]}"


class Pretty:
    def __init__(self, enable: bool = True):
        self.console: Optional[Console] = Console(log_path=False, highlight=False) if enable else None

    @property
    def enable(self) -> bool:
        return self.console is not None

    def log(self, msg: str):
        if self.console is None:
            print(Text.from_markup(msg).plain)
            return
        self.console.log(msg)

    def banner(self, title: str, subtitle: str = "", style: str = "bold cyan"):
        if self.console is None:
            print(f"\n=== {title} ===" + (f"\n{subtitle}" if subtitle else ""))
            return
        body = Text(f"{title}\n{subtitle}" if subtitle else title, justify="center")
        self.console.print(Panel.fit(body, title="slothunter", style=style))

    def kv_panel(self, title: str, items: Iterable[Tuple[str, Any]], style: str = "bold"):
        items = list(items)
        if self.console is None:
            print(f"\n[{title}]")
            print("\n".join(f"  - {k}: {v}" for k, v in items))
            return
        width = max((len(k) for k, _ in items), default=0)
        body = "\n".join(f"[white]{k.ljust(width)}[/white]  {v}" for k, v in items)
        self.console.print(Panel(body, title=title, border_style=style))

    def table(self, title: str, columns: Sequence[str], rows: List[List[Any]], caption: Optional[str] = None):
        shown = rows[:LOG_TOP_N]
        if self.console is None:
            print(f"\n{title}")
            for line in [list(columns)] + shown:
                print(" | ".join(str(x) for x in line))
            if caption:
                print(caption)
            return
        t = Table(title=title, caption=caption, box=box.MINIMAL_DOUBLE_HEAD)
        for c in columns:
            t.add_column(c)
        for r in shown:
            t.add_row(*(str(x) for x in r))
        self.console.print(t)


pretty = Pretty(enable=PRETTY_LOGS)
