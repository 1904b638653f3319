from weathercard.card.controller import WeatherCard, describe_weather, error_message
from weathercard.card.state import CardView, ErrorKind, RecordContext, RecordType

__all__ = [
    "CardView",
    "ErrorKind",
    "RecordContext",
    "RecordType",
    "WeatherCard",
    "describe_weather",
    "error_message",
]
