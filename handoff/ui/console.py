"""
Terminal presenter for a transfer flow.

Loader and transfer stages are transient rich progress displays; the waiting
stage prints the receive URL with its QR code; errors stay on screen in a red
panel until the user dismisses them.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.text import Text

from handoff.core.presenter import ERROR, LOADING, TRANSFERRING, WAITING, Stage


class ConsolePresenter:
    def __init__(self, console: Optional[Console] = None, *, interactive: bool = False):
        self.console = console or Console()
        self.interactive = interactive
        self.visible = False
        self.current: Optional[Stage] = None

        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self._bar = False

    def show(self, stage: Stage) -> None:
        self.visible = True
        self._render(stage)

    def update(self, stage: Stage) -> None:
        if not self.visible:
            self.visible = True
        self._render(stage)

    def dismiss(self) -> None:
        self._stop()
        self.visible = False
        self.current = None

    def _start(self, description: str, *, bar: bool) -> None:
        self._stop()
        columns = [SpinnerColumn(), TextColumn("[progress.description]{task.description}")]
        if bar:
            columns += [BarColumn(), TextColumn("{task.percentage:>3.0f}%")]
        self._progress = Progress(*columns, console=self.console, transient=True)
        self._task = self._progress.add_task(description, total=None)
        self._bar = bar
        self._progress.start()

    def _stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None
        self._bar = False

    def _render(self, stage: Stage) -> None:
        self.current = stage

        if stage.kind == LOADING:
            self._start(stage.title, bar=False)

        elif stage.kind == WAITING:
            self._stop()
            body = Text()
            if stage.visual:
                body.append(stage.visual)
                body.append("\n")
            if stage.url:
                body.append(stage.url, style=f"link {stage.url}")
            self.console.print(Panel.fit(body, title="Receive link"))
            self._start(stage.title, bar=False)

        elif stage.kind == TRANSFERRING:
            if self._progress is None or not self._bar:
                self._start(stage.title, bar=True)
            if stage.progress is not None:
                n = max(0.0, min(1.0, stage.progress)) * 100
                self._progress.update(self._task, total=100, completed=n)

        elif stage.kind == ERROR:
            self._stop()
            self.console.print(Panel(Text(stage.message or ""), title=stage.title, border_style="red"))
            if self.interactive:
                self.console.input("[bold]Ok[/bold] (press Enter) ")
            self.dismiss()

        else:
            raise ValueError(f"unknown stage kind: {stage.kind}")
