"""
Input validators

Pure functions with no I/O. Each raises ValidationFailure with a
human-readable message on the first problem found.
"""

import re
from datetime import date
from typing import List, Dict, Tuple

from carenow.core.exceptions import ValidationFailure
from carenow.schemas.availability import WEEK_DAYS
from carenow.schemas.partner import PartnerProfile

EMAIL_PATTERN = re.compile(r"^[\w\-\.]+@([\w-]+\.)+[\w-]{2,4}$")
VIETNAMESE_PHONE_PATTERN = re.compile(r"^(\+84|84|0)(3|5|7|8|9)([0-9]{8})$")
SERVICE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
TIME_SLOT_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])-([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")

MAX_PRICE_PER_HOUR = 1_000_000
MAX_EXPERIENCE_YEARS = 50
MAX_BIO_LENGTH = 500
MAX_SERVICES = 10
MAX_SLOTS_PER_DAY = 12
MIN_SLOT_MINUTES = 30
MAX_SLOT_MINUTES = 4 * 60
MAX_DAILY_MINUTES = 12 * 60


def validate_partner_id(partner_id: str) -> None:
    if not partner_id or not partner_id.strip():
        raise ValidationFailure("Partner ID cannot be empty")


def validate_job_id(job_id: str) -> None:
    if not job_id or not job_id.strip():
        raise ValidationFailure("Job ID cannot be empty")


def validate_reason(reason: str) -> None:
    if not reason or not reason.strip():
        raise ValidationFailure("Reason cannot be empty")


def validate_email(email: str) -> None:
    if not email or not email.strip():
        raise ValidationFailure("Email cannot be empty")
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailure("Invalid email format")


def validate_vietnamese_phone(phone: str) -> None:
    if not phone or not phone.strip():
        raise ValidationFailure("Phone number cannot be empty")
    if not VIETNAMESE_PHONE_PATTERN.match(phone):
        raise ValidationFailure("Invalid Vietnamese phone number format")


def validate_price(price: float) -> None:
    if price <= 0:
        raise ValidationFailure("Price per hour must be greater than 0")
    if price > MAX_PRICE_PER_HOUR:
        raise ValidationFailure("Price per hour cannot exceed 1,000,000 VND")


def validate_experience_years(years: int) -> None:
    if years < 0:
        raise ValidationFailure("Experience years cannot be negative")
    if years > MAX_EXPERIENCE_YEARS:
        raise ValidationFailure(f"Experience years cannot exceed {MAX_EXPERIENCE_YEARS}")


def validate_bio(bio: str) -> None:
    if bio is not None and len(bio) > MAX_BIO_LENGTH:
        raise ValidationFailure(f"Bio cannot exceed {MAX_BIO_LENGTH} characters")


def validate_services(services: List[str]) -> None:
    if not services:
        raise ValidationFailure("Partner must provide at least one service")
    if len(services) > MAX_SERVICES:
        raise ValidationFailure(f"Partner cannot provide more than {MAX_SERVICES} services")

    for service_id in services:
        if not service_id or not service_id.strip():
            raise ValidationFailure("Service ID cannot be empty")
        if not SERVICE_ID_PATTERN.match(service_id):
            raise ValidationFailure(f"Invalid service ID format: {service_id}")

    if len(set(services)) != len(services):
        raise ValidationFailure("Duplicate services are not allowed")


def parse_time_slot(slot: str) -> Tuple[int, int]:
    """
    Parse an "HH:MM-HH:MM" slot into start and end minutes of the day.

    Raises:
        ValidationFailure: If the slot is malformed, ends before it starts,
            or lasts less than 30 minutes or more than 4 hours
    """
    match = TIME_SLOT_PATTERN.match(slot or "")
    if match is None:
        raise ValidationFailure(f"Invalid time slot format: {slot}")

    start_hour, start_minute, end_hour, end_minute = (int(group) for group in match.groups())
    start = start_hour * 60 + start_minute
    end = end_hour * 60 + end_minute

    if end <= start:
        raise ValidationFailure(f"Time slot must end after it starts: {slot}")
    if end - start < MIN_SLOT_MINUTES:
        raise ValidationFailure(f"Time slot must last at least {MIN_SLOT_MINUTES} minutes: {slot}")
    if end - start > MAX_SLOT_MINUTES:
        raise ValidationFailure(f"Time slot cannot last more than 4 hours: {slot}")
    return start, end


def validate_time_slot(slot: str) -> None:
    parse_time_slot(slot)


def validate_working_hours(working_hours: Dict[str, List[str]]) -> None:
    """
    Validate a weekly schedule of day name to time slots.

    Days may be left empty (day off) but at least one day must have a slot.
    """
    if not working_hours:
        raise ValidationFailure("Working hours cannot be empty")

    for day, slots in working_hours.items():
        if day.lower() not in WEEK_DAYS:
            raise ValidationFailure(f"Invalid day: {day}")
        if not slots:
            continue
        if len(slots) > MAX_SLOTS_PER_DAY:
            raise ValidationFailure(f"Too many time slots for {day} (max {MAX_SLOTS_PER_DAY})")

        parsed = sorted(parse_time_slot(slot) for slot in slots)
        for (_, previous_end), (next_start, _) in zip(parsed, parsed[1:]):
            if previous_end > next_start:
                raise ValidationFailure(f"Overlapping time slots found for {day}")

        if sum(end - start for start, end in parsed) > MAX_DAILY_MINUTES:
            raise ValidationFailure(f"Total working hours for {day} cannot exceed 12 hours")

    if not any(slots for slots in working_hours.values()):
        raise ValidationFailure("Partner must work at least one day per week")


def validate_dates(dates: List[str]) -> None:
    if not dates:
        raise ValidationFailure("Dates cannot be empty")
    for value in dates:
        try:
            date.fromisoformat(value)
        except (TypeError, ValueError):
            raise ValidationFailure(f"Invalid date (expected YYYY-MM-DD): {value}")
        if len(value) != 10:
            raise ValidationFailure(f"Invalid date (expected YYYY-MM-DD): {value}")


def validate_partner_profile(profile: PartnerProfile) -> None:
    """Run every profile check in the order a partner would fix them"""
    validate_partner_id(profile.uid)
    if not profile.name or not profile.name.strip():
        raise ValidationFailure("Partner name cannot be empty")
    validate_email(profile.email)
    validate_vietnamese_phone(profile.phone)
    if len(profile.name.strip()) < 2:
        raise ValidationFailure("Partner name must be at least 2 characters")
    validate_price(profile.price_per_hour)
    validate_experience_years(profile.experience_years)
    validate_bio(profile.bio)
    validate_services(profile.services)
    validate_working_hours(profile.working_hours)
