"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.exceptions import InvalidConfiguration
from .domain.models import (
    DEFAULT_TIMEZONE,
    WeeklySchedule,
    WorkingHours,
    get_timezone,
    parse_time_string,
)


class TenantSettings(BaseModel):
    """Booking settings of the barbershop."""
    timezone: str = DEFAULT_TIMEZONE
    booking_lead_hours: float = 2
    max_booking_days: int = 30
    slot_interval_minutes: int = 30

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        get_timezone(value)
        return value

    @field_validator("booking_lead_hours")
    @classmethod
    def validate_lead_hours(cls, value: float) -> float:
        if value < 0:
            raise ValueError("booking_lead_hours must not be negative")
        return value

    @field_validator("max_booking_days", "slot_interval_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value


class ServiceConfig(BaseModel):
    """A service offered by the shop."""
    id: str
    name: str
    duration_minutes: int
    price_cents: int = 0

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is positive."""
        if value <= 0:
            raise InvalidConfiguration("duration_minutes must be greater than zero")
        return value


class WorkingHoursConfig(BaseModel):
    """Weekly working hours of a barber for one day (0=Sunday, 6=Saturday)."""
    day_of_week: int
    start_time: str = "09:00"
    end_time: str = "18:00"
    is_active: bool = True

    @field_validator("day_of_week")
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        if value not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {value}")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Validate HH:MM format."""
        parse_time_string(value)
        return value

    def to_domain(self, barber_id: Optional[str] = None) -> WorkingHours:
        return WorkingHours(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            is_active=self.is_active,
            barber_id=barber_id,
        )


class BarberConfig(BaseModel):
    """Barber configuration."""
    id: str
    name: str
    service_ids: List[str] = Field(default_factory=list)
    working_hours: List[WorkingHoursConfig] = Field(default_factory=list)

    @field_validator("working_hours")
    @classmethod
    def validate_unique_days(cls, value: List[WorkingHoursConfig]) -> List[WorkingHoursConfig]:
        """Ensure at most one rule per day of week."""
        seen: set[int] = set()
        for rule in value:
            if rule.day_of_week in seen:
                raise ValueError(f"Duplicate working hours for day_of_week {rule.day_of_week}")
            seen.add(rule.day_of_week)
        return value

    def weekly_schedule(self) -> WeeklySchedule:
        return WeeklySchedule(rules=tuple(rule.to_domain(self.id) for rule in self.working_hours))

    def offers(self, service_id: str) -> bool:
        return service_id in self.service_ids


class AppConfig(BaseModel):
    """Application configuration."""
    name: str = ""
    settings: TenantSettings = Field(default_factory=TenantSettings)
    services: List[ServiceConfig] = Field(default_factory=list)
    barbers: List[BarberConfig] = Field(default_factory=list)
    bookings_file: Optional[Path] = None

    @field_validator("services", "barbers")
    @classmethod
    def validate_unique_ids(cls, value):
        """Ensure service and barber ids are unique."""
        seen: set[str] = set()
        for item in value:
            key = item.id.lower()
            if key in seen:
                raise ValueError(f"Duplicate id detected: {item.id}")
            seen.add(key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative bookings_file is resolved against the config file's directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        bookings_file = data.get("bookings_file")
        if bookings_file and not Path(bookings_file).is_absolute():
            data["bookings_file"] = config_path.parent / bookings_file

        return cls(**data)

    def find_service(self, identifier: str) -> ServiceConfig | None:
        """Find a service by id or name."""
        key = identifier.lower()
        for service in self.services:
            if service.id.lower() == key or service.name.lower() == key:
                return service
        return None

    def find_barber(self, identifier: str) -> BarberConfig | None:
        """Find a barber by id or name."""
        key = identifier.lower()
        for barber in self.barbers:
            if barber.id.lower() == key or barber.name.lower() == key:
                return barber
        return None

    def resolve_service(self, identifier: str) -> ServiceConfig:
        """
        Resolve a service identifier (id or name).

        Raises:
            ValueError: If identifier cannot be resolved
        """
        service = self.find_service(identifier)
        if service is None:
            raise ValueError(
                f"Unknown service: '{identifier}'. Use a configured service id or name."
            )
        return service

    def resolve_barber(self, identifier: str, service: ServiceConfig | None = None) -> BarberConfig:
        """
        Resolve a barber identifier (id or name), optionally checking they offer a service.

        Raises:
            ValueError: If identifier cannot be resolved or the barber does not offer the service
        """
        barber = self.find_barber(identifier)
        if barber is None:
            raise ValueError(
                f"Unknown barber: '{identifier}'. Use a configured barber id or name."
            )
        if service is not None and not barber.offers(service.id):
            raise ValueError(f"{barber.name} does not offer '{service.name}'.")
        return barber


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
