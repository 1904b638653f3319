from textual.app import App

from weathercard.card import RecordContext, WeatherCard
from weathercard.services.records import RecordStore
from weathercard.services.weather import WeatherService
from weathercard.tui.card_screen import WeatherCardScreen


class WeatherCardApp(App):
    TITLE = "Weather Card"
    SUB_TITLE = "Current conditions"

    def __init__(self, card: WeatherCard, records: RecordStore | None = None) -> None:
        super().__init__()
        self._card = card
        self._records = records

    def on_mount(self) -> None:
        self.push_screen(WeatherCardScreen(self._card, self._records))


def main(record: RecordContext | None = None) -> None:
    service = WeatherService()
    records = RecordStore() if record is not None else None
    card = WeatherCard(service.alookup, record=record, records=records)
    WeatherCardApp(card, records).run()
