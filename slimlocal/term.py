"""Terminal styling and step-by-step progress output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Style:
    foreground: int | None = None
    faint: bool = False
    bold: bool = False

    def render(self, text: str) -> str:
        codes = []
        if self.bold:
            codes.append("1")
        if self.faint:
            codes.append("2")
        if self.foreground is not None:
            codes.append(str(30 + self.foreground))
        if not codes:
            return text
        return f"\x1b[{';'.join(codes)}m{text}\x1b[0m"


GREEN = Style(foreground=2)
RED = Style(foreground=1)
YELLOW = Style(foreground=3)
CYAN = Style(foreground=6)
MAGENTA = Style(foreground=5)
DIM = Style(faint=True)
BOLD = Style(bold=True)

CHECK_MARK = GREEN.render("✓")
CROSS_MARK = RED.render("✗")
WARN_MARK = YELLOW.render("!")


def style_for_status(code: int) -> Style:
    if code >= 500:
        return RED
    if code >= 400:
        return YELLOW
    if code >= 300:
        return CYAN
    return GREEN


@dataclass
class Step:
    name: str
    run: Callable[[], str]
    interactive: bool = False


def _run_step(step: Step) -> None:
    if step.interactive:
        print(DIM.render("  · " + step.name))
    try:
        result = step.run()
    except Exception:
        print(f"  {CROSS_MARK} {step.name}")
        raise
    if result.startswith("skipped"):
        print(f"  {WARN_MARK} {step.name} ({result})")
    else:
        print(f"  {CHECK_MARK} {step.name}")


def run_steps(steps: list[Step]) -> None:
    """Run steps in order, stopping at the first that raises."""
    for step in steps:
        _run_step(step)