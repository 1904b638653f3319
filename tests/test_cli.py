import pytest
from typer.testing import CliRunner

from weathercard import cli
from weathercard.services import weather as weather_module
from weathercard.services.config import load_config
from weathercard.services.weather import WeatherServiceError

runner = CliRunner()


class FakeWeatherService:
    def __init__(self, *args, **kwargs) -> None:
        pass

    async def alookup(self, city):
        if city == "Nowhere":
            raise WeatherServiceError("No matching city", body={"message": "city not found"})
        return {
            "name": city,
            "country": "France",
            "weather": [{"description": "clear sky"}],
            "main": {"temp": 21.0, "humidity": 40.0},
            "wind": {"speed": 5.0},
        }


@pytest.fixture
def fake_service(monkeypatch):
    monkeypatch.setattr(weather_module, "WeatherService", FakeWeatherService)


def test_weather_prints_description(data_dir, fake_service):
    result = runner.invoke(cli.app, ["weather", "Paris"])
    assert result.exit_code == 0
    assert "Paris, France: clear sky" in result.output


def test_weather_without_city(data_dir, fake_service):
    result = runner.invoke(cli.app, ["weather"])
    assert result.exit_code == 1
    assert "Please enter a city name." in result.output


def test_weather_failure(data_dir, fake_service):
    result = runner.invoke(cli.app, ["weather", "Nowhere"])
    assert result.exit_code == 1
    assert "city not found" in result.output


def test_link_and_unlink(data_dir):
    result = runner.invoke(cli.app, ["link", "001A", "Account"])
    assert result.exit_code == 0
    assert load_config(data_dir).linked_record.record_id == "001A"

    result = runner.invoke(cli.app, ["unlink"])
    assert result.exit_code == 0
    assert load_config(data_dir).linked_record is None

    result = runner.invoke(cli.app, ["unlink"])
    assert "No record is linked." in result.output


def test_link_rejects_unsupported_type(data_dir):
    result = runner.invoke(cli.app, ["link", "006O", "Opportunity"])
    assert result.exit_code == 1
    assert "Unsupported record type" in result.output


def test_record_set_and_status(data_dir):
    result = runner.invoke(cli.app, ["record-set", "003C", "--type", "Contact", "--city", "Oslo"])
    assert result.exit_code == 0
    runner.invoke(cli.app, ["link", "003C", "Contact"])

    result = runner.invoke(cli.app, ["link-status"])
    assert "Linked record: Contact 003C" in result.output
    assert "MailingCity: Oslo" in result.output

    runner.invoke(cli.app, ["record-set", "003C", "--type", "Contact"])
    result = runner.invoke(cli.app, ["record-show", "003C"])
    assert result.exit_code == 0
    assert "003C (Contact)" in result.output
    assert "No fields set." in result.output


def test_record_show_missing(data_dir):
    result = runner.invoke(cli.app, ["record-show", "missing"])
    assert result.exit_code == 1
    assert "No record found" in result.output


def test_record_set_refuses_corrupt_store(data_dir):
    path = data_dir / "records.json"
    path.write_text("{broken")

    result = runner.invoke(cli.app, ["record-set", "003C", "--type", "Contact", "--city", "Oslo"])

    assert result.exit_code == 1
    assert "not valid JSON" in result.output
    assert path.read_text() == "{broken"
