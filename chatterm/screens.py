"""Modal screens used while the model selector mode is active."""

from __future__ import annotations

from typing import Any

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import OptionList, Static

from .message import ModelRef


class ModelPickerScreen(ModalScreen[ModelRef | None]):
    """Modal picker returning the chosen model, or ``None`` on Escape."""

    CSS = """
    ModelPickerScreen {
        align: center middle;
    }

    #picker-dialog {
        width: 60;
        max-height: 24;
        padding: 1 2;
        border: round $panel;
        background: $surface;
    }

    #picker-title {
        padding-bottom: 1;
        text-style: bold;
    }

    #picker-help {
        padding-top: 1;
    }
    """

    def __init__(self, models: list[ModelRef], active: ModelRef | None = None) -> None:
        super().__init__()
        self._models = models
        self._active = active

    def compose(self) -> ComposeResult:
        labels = [
            f"{model}  (active)" if model == self._active else str(model)
            for model in self._models
        ]
        with Container(id="picker-dialog"):
            yield Static("Select model", id="picker-title")
            yield OptionList(*labels, id="picker-options")
            yield Static("Enter/click to select | Esc to cancel", id="picker-help")

    def on_mount(self) -> None:
        options = self.query_one("#picker-options", OptionList)
        if self._active in self._models:
            options.highlighted = self._models.index(self._active)
        options.focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        index = event.option_index
        if 0 <= index < len(self._models):
            self.dismiss(self._models[index])

    def on_key(self, event: Any) -> None:  # noqa: ANN401
        if str(getattr(event, "key", "")).lower() == "escape":
            event.stop()
            self.dismiss(None)
