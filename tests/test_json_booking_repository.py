"""
Tests for the JSON booking repository.
"""

import json
import logging
from datetime import date, datetime

import pytest
import pytz

from bookingslots.adapters.json_booking_repository import JsonBookingRepository, parse_instant
from bookingslots.config import AppConfig
from bookingslots.domain.exceptions import BookingDataError
from bookingslots.domain.models import AppointmentStatus, BlockStatus

SAO_PAULO = pytz.timezone("America/Sao_Paulo")


def at(hour, minute=0, day=date(2024, 11, 25)):
    return SAO_PAULO.localize(datetime(day.year, day.month, day.day, hour, minute))


BOOKINGS = {
    "appointments": [
        {
            "id": "a1",
            "barberId": "carlos",
            "startsAt": "2024-11-25T10:00:00-03:00",
            "endsAt": "2024-11-25T10:30:00-03:00",
            "status": "confirmed",
            "priceCents": 3500,
        },
        {
            "id": "a2",
            "barberId": "rafael",
            "startsAt": "2024-11-25T10:00:00-03:00",
            "endsAt": "2024-11-25T10:30:00-03:00",
            "status": "scheduled",
        },
        {
            "id": "a3",
            "barberId": "carlos",
            "startsAt": "2024-11-26T10:00:00",
            "endsAt": "2024-11-26T11:00:00",
            "status": "canceled",
        },
    ],
    "scheduleBlocks": [
        {
            "id": "b1",
            "barberId": "carlos",
            "startsAt": "2024-11-25T15:00:00Z",
            "endsAt": "2024-11-25T16:00:00Z",
            "reason": "Pausa",
            "status": "approved",
        }
    ],
}


@pytest.fixture
def config():
    return AppConfig(
        barbers=[
            {
                "id": "carlos",
                "name": "Carlos",
                "working_hours": [{"day_of_week": 1, "start_time": "09:00", "end_time": "18:00"}],
            }
        ]
    )


def _write(tmp_path, data):
    data_file = tmp_path / "bookings.json"
    data_file.write_text(json.dumps(data), encoding="utf-8")
    return data_file


class TestLoading:
    """Tests for reading the bookings file."""

    def test_loads_appointments_and_blocks(self, tmp_path, config):
        repository = JsonBookingRepository.from_config(config, data_file=_write(tmp_path, BOOKINGS))

        assert [a.id for a in repository.appointments] == ["a1", "a2", "a3"]
        assert repository.appointments[0].status is AppointmentStatus.CONFIRMED
        assert repository.appointments[0].price_cents == 3500
        assert repository.schedule_blocks[0].status is BlockStatus.APPROVED
        assert repository.schedule_blocks[0].reason == "Pausa"

    def test_naive_times_are_local(self, tmp_path, config):
        """Values without an offset are read in the shop's timezone."""
        repository = JsonBookingRepository.from_config(config, data_file=_write(tmp_path, BOOKINGS))

        assert repository.appointments[2].starts_at == at(10, day=date(2024, 11, 26))

    def test_utc_times_keep_their_instant(self, tmp_path, config):
        repository = JsonBookingRepository.from_config(config, data_file=_write(tmp_path, BOOKINGS))

        assert repository.schedule_blocks[0].starts_at == at(12)

    def test_bookings_file_from_config(self, tmp_path, config):
        config.bookings_file = _write(tmp_path, BOOKINGS)

        repository = JsonBookingRepository.from_config(config)

        assert len(repository.appointments) == 3

    def test_without_bookings_file(self, config):
        repository = JsonBookingRepository.from_config(config)

        assert repository.appointments == []
        assert repository.schedule_blocks == []
        assert repository.get_working_hours("carlos", 1).end_time == "18:00"

    def test_missing_file(self, tmp_path, config):
        with pytest.raises(BookingDataError, match="not found"):
            JsonBookingRepository.from_config(config, data_file=tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path, config):
        data_file = tmp_path / "bookings.json"
        data_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(BookingDataError, match="Invalid JSON"):
            JsonBookingRepository.from_config(config, data_file=data_file)

    def test_invalid_entries_are_skipped(self, tmp_path, config, caplog):
        data = {
            "appointments": [
                {"id": "bad-status", "barberId": "carlos", "startsAt": "2024-11-25T10:00:00",
                 "endsAt": "2024-11-25T11:00:00", "status": "tentative"},
                {"id": "no-end", "barberId": "carlos", "startsAt": "2024-11-25T10:00:00",
                 "status": "confirmed"},
                {"id": "ok", "barberId": "carlos", "startsAt": "2024-11-25T10:00:00",
                 "endsAt": "2024-11-25T11:00:00", "status": "confirmed"},
            ],
            "scheduleBlocks": [
                {"id": "bad-date", "barberId": "carlos", "startsAt": "yesterday",
                 "endsAt": "2024-11-25T11:00:00", "status": "approved"},
            ],
        }

        with caplog.at_level(logging.WARNING):
            repository = JsonBookingRepository.from_config(config, data_file=_write(tmp_path, data))

        assert [a.id for a in repository.appointments] == ["ok"]
        assert repository.schedule_blocks == []
        assert "bad-status" in caplog.text
        assert "bad-date" in caplog.text

    def test_rows_that_are_not_objects_are_skipped(self, tmp_path, config, caplog):
        data = {
            "appointments": [
                "oops",
                {"id": "ok", "barberId": "carlos", "startsAt": "2024-11-25T10:00:00",
                 "endsAt": "2024-11-25T11:00:00", "status": "confirmed"},
            ],
            "scheduleBlocks": [42],
        }

        with caplog.at_level(logging.WARNING):
            repository = JsonBookingRepository.from_config(config, data_file=_write(tmp_path, data))

        assert [a.id for a in repository.appointments] == ["ok"]
        assert repository.schedule_blocks == []
        assert "'oops'" in caplog.text
        assert "42" in caplog.text

    @pytest.mark.parametrize("key", ["appointments", "scheduleBlocks"])
    @pytest.mark.parametrize("value", [None, "oops", {"id": "a1"}])
    def test_section_must_be_a_list(self, tmp_path, config, key, value):
        with pytest.raises(BookingDataError, match=f"{key}.*must be a list"):
            JsonBookingRepository.from_config(config, data_file=_write(tmp_path, {key: value}))


class TestQueries:
    """Tests for the repository query methods."""

    @pytest.fixture
    def repository(self, tmp_path, config):
        return JsonBookingRepository.from_config(config, data_file=_write(tmp_path, BOOKINGS))

    def test_appointments_filtered_by_barber_and_window(self, repository):
        monday = repository.get_appointments("carlos", at(0), at(0, day=date(2024, 11, 26)))

        assert [a.id for a in monday] == ["a1"]

    def test_window_is_exclusive_at_edges(self, repository):
        assert repository.get_appointments("carlos", at(10, 30), at(11)) == []
        assert repository.get_appointments("carlos", at(9, 30), at(10)) == []

    def test_blocks_filtered_by_barber(self, repository):
        assert len(repository.get_schedule_blocks("carlos", at(0), at(23))) == 1
        assert repository.get_schedule_blocks("rafael", at(0), at(23)) == []

    def test_working_hours_for_unknown_barber(self, repository):
        assert repository.get_working_hours("rafael", 1) is None
        assert repository.get_working_hours("carlos", 2) is None


def test_parse_instant_with_offset():
    assert parse_instant("2024-11-25T09:00:00-03:00") == at(9)
