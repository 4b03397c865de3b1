"""
Tests for the command-line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from bookingslots import __version__
from bookingslots.cli.app import app

runner = CliRunner()

CONFIG_YAML = """
name: Fade Shop
bookings_file: bookings.json
settings:
  timezone: America/Sao_Paulo
  booking_lead_hours: 2
  max_booking_days: 30
services:
  - {id: svc-1, name: Corte, duration_minutes: 30, price_cents: 3500}
  - {id: svc-2, name: Barba, duration_minutes: 20, price_cents: 2500}
barbers:
  - id: carlos
    name: Carlos
    service_ids: [svc-1]
    working_hours:
      - {day_of_week: 1, start_time: "09:00", end_time: "11:00"}
"""

BOOKINGS = {
    "appointments": [
        {
            "id": "a1",
            "barberId": "carlos",
            "startsAt": "2024-11-25T10:00:00-03:00",
            "endsAt": "2024-11-25T10:30:00-03:00",
            "status": "confirmed",
        }
    ],
    "scheduleBlocks": [],
}


@pytest.fixture
def config_path(tmp_path):
    (tmp_path / "bookings.json").write_text(json.dumps(BOOKINGS), encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


def test_slots_for_past_day_are_listed_as_taken(config_path):
    """Days in the past are shown with every slot unavailable."""
    result = runner.invoke(
        app, ["slots", "carlos", "Corte", "--date", "2024-11-25", "--config", str(config_path)]
    )

    assert result.exit_code == 0, result.output
    assert "Carlos" in result.output
    assert "09:00" in result.output
    assert "10:30" in result.output
    assert "taken" in result.output
    assert "available" not in result.output


def test_available_only_on_past_day(config_path):
    result = runner.invoke(
        app,
        ["slots", "carlos", "svc-1", "--date", "2024-11-25", "--available-only", "--config", str(config_path)],
    )

    assert result.exit_code == 0, result.output
    assert "No times available" in result.output


def test_unknown_barber_exits_with_error(config_path):
    result = runner.invoke(app, ["slots", "joao", "Corte", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Unknown barber" in result.output


def test_barber_without_service_exits_with_error(config_path):
    result = runner.invoke(app, ["slots", "carlos", "Barba", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "does not offer" in result.output


def test_bad_date_exits_with_error(config_path):
    result = runner.invoke(
        app, ["slots", "carlos", "Corte", "--date", "25/11/2024", "--config", str(config_path)]
    )

    assert result.exit_code == 1
    assert "Could not parse date" in result.output


def test_missing_config(tmp_path):
    result = runner.invoke(app, ["list-barbers", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_days_overview(config_path):
    result = runner.invoke(
        app,
        ["days", "carlos", "Corte", "--start", "2024-11-24", "--days", "3", "--config", str(config_path)],
    )

    assert result.exit_code == 0, result.output
    assert "Sun 24/11/2024" in result.output
    assert "Tue 26/11/2024" in result.output


def test_list_barbers(config_path):
    result = runner.invoke(app, ["list-barbers", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "Carlos" in result.output
    assert "Mon 09:00-11:00" in result.output


def test_list_services(config_path):
    result = runner.invoke(app, ["list-services", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "Barba" in result.output
    assert "35.00" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_malformed_bookings_file_exits_with_error(config_path):
    (config_path.parent / "bookings.json").write_text('{"appointments": null}', encoding="utf-8")

    result = runner.invoke(
        app, ["slots", "carlos", "Corte", "--date", "2024-11-25", "--config", str(config_path)]
    )

    assert result.exit_code == 1
    assert "must be a list" in result.output
