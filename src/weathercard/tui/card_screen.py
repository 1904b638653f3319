from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import Screen
from textual.widgets import Button, Input, Static

from weathercard.card import CardView, ErrorKind, WeatherCard
from weathercard.card.controller import SUBMIT_KEY
from weathercard.services.records import RecordStore
from weathercard.services.weather import format_weather


class WeatherCardScreen(Screen):
    CSS = """
    Screen {
        background: #0f1418;
        align: center middle;
    }

    #card {
        width: 72;
        height: auto;
        border: round #3b4a58;
        padding: 1 2;
    }

    .card-title {
        text-style: bold;
        color: #d9e2ec;
        margin-bottom: 1;
    }

    #controls {
        height: auto;
    }

    #city-input {
        width: 1fr;
    }

    #record-note {
        color: #8fa3b5;
        text-style: italic;
    }

    #status {
        color: #f0b429;
    }

    #result {
        margin-top: 1;
        color: #9fd3a8;
    }

    #error {
        margin-top: 1;
        color: #ef5350;
    }

    #error.hint {
        color: #f0b429;
    }
    """

    BINDINGS = [
        ("ctrl+q", "app.quit", "Quit"),
        ("ctrl+l", "clear_card", "Clear"),
        ("ctrl+r", "reload_records", "Reload record"),
    ]

    def __init__(self, card: WeatherCard, records: RecordStore | None = None) -> None:
        super().__init__()
        self._card = card
        self._records = records
        self._remove_listener = None

    def compose(self) -> ComposeResult:
        with Container(id="card"):
            yield Static("Weather", classes="card-title")
            with Horizontal(id="controls"):
                yield Input(placeholder="City", id="city-input")
                yield Button("Search", id="search", variant="primary")
                yield Button("Clear", id="clear")
            yield Static("", id="record-note")
            yield Static("", id="status")
            yield Static("", id="result")
            yield Static("", id="error")

    def on_mount(self) -> None:
        self._remove_listener = self._card.add_listener(self._render_view)
        self._card.connect()
        self._render_view(self._card.view())
        self.query_one("#city-input", Input).focus()

    def on_unmount(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
        self._card.disconnect()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "city-input":
            return
        # echo of a value the card itself pushed into the input
        if event.value == self._card.city:
            return
        self._card.handle_city_change(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "city-input":
            return
        self.run_worker(self._card.handle_key(SUBMIT_KEY), name="weather", group="weather")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "search":
            self.run_worker(self._card.search(), name="weather", group="weather")
        elif event.button.id == "clear":
            self.action_clear_card()

    def action_clear_card(self) -> None:
        self._card.clear()

    def action_reload_records(self) -> None:
        if self._records is not None:
            self._records.refresh()

    def _render_view(self, view: CardView) -> None:
        city_input = self.query_one("#city-input", Input)
        if city_input.value != view.city:
            city_input.value = view.city

        self.query_one("#record-note", Static).update(view.record_note or "")
        self.query_one("#status", Static).update("Loading..." if view.loading else "")

        result = self.query_one("#result", Static)
        if view.weather is not None:
            result.update(format_weather(view.weather, view.description or ""))
        else:
            result.update("")

        error = self.query_one("#error", Static)
        error.update(view.error or "")
        error.set_class(view.error_kind is ErrorKind.HINT, "hint")
