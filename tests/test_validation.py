"""
Tests for the input validators
"""

import pytest

from carenow.core.exceptions import ValidationFailure
from carenow.schemas.partner import PartnerProfile
from carenow.services.validation import (
    parse_time_slot,
    validate_time_slot,
    validate_working_hours,
    validate_email,
    validate_vietnamese_phone,
    validate_price,
    validate_experience_years,
    validate_bio,
    validate_services,
    validate_dates,
    validate_partner_profile,
)


class TestTimeSlots:
    @pytest.mark.parametrize("slot", ["25:00-26:00", "08:00", "8-10", "", "08:00-24:00"])
    def test_malformed_slots_rejected(self, slot):
        with pytest.raises(ValidationFailure, match="Invalid time slot format"):
            validate_time_slot(slot)

    def test_fifteen_minutes_is_too_short(self):
        with pytest.raises(ValidationFailure, match="at least 30 minutes"):
            validate_time_slot("08:00-08:15")

    def test_five_hours_is_too_long(self):
        with pytest.raises(ValidationFailure, match="more than 4 hours"):
            validate_time_slot("08:00-13:00")

    def test_just_over_four_hours_is_too_long(self):
        with pytest.raises(ValidationFailure, match="more than 4 hours"):
            validate_time_slot("08:00-12:30")

    def test_end_before_start(self):
        with pytest.raises(ValidationFailure, match="end after it starts"):
            validate_time_slot("10:00-09:00")

    def test_bounds_are_inclusive(self):
        assert parse_time_slot("08:00-08:30") == (480, 510)
        assert parse_time_slot("08:00-12:00") == (480, 720)


class TestWorkingHours:
    def test_overlapping_slots_rejected(self):
        with pytest.raises(ValidationFailure, match="Overlapping time slots found for monday"):
            validate_working_hours({"monday": ["08:00-10:00", "09:00-11:00"]})

    def test_non_overlapping_slots_accepted(self):
        validate_working_hours({"monday": ["08:00-10:00", "14:00-16:00"]})

    def test_adjacent_slots_accepted(self):
        validate_working_hours({"tuesday": ["10:00-12:00", "08:00-10:00"]})

    def test_invalid_day(self):
        with pytest.raises(ValidationFailure, match="Invalid day: funday"):
            validate_working_hours({"funday": ["08:00-10:00"]})

    def test_more_than_twelve_hours_a_day(self):
        slots = ["00:00-04:00", "04:00-08:00", "08:00-12:00", "12:00-13:00"]
        with pytest.raises(ValidationFailure, match="cannot exceed 12 hours"):
            validate_working_hours({"friday": slots})

    def test_at_least_one_working_day(self):
        with pytest.raises(ValidationFailure, match="at least one day"):
            validate_working_hours({"monday": [], "sunday": []})

    def test_empty_schedule(self):
        with pytest.raises(ValidationFailure, match="cannot be empty"):
            validate_working_hours({})

    def test_day_names_are_case_insensitive(self):
        validate_working_hours({"Monday": ["09:00-11:00"]})


class TestProfileFields:
    @pytest.mark.parametrize("email", ["an@carenow.vn", "first.last@mail.example.com"])
    def test_valid_emails(self, email):
        validate_email(email)

    @pytest.mark.parametrize("email", ["", "no-at-sign", "a@b", "a@b.toolongtld"])
    def test_invalid_emails(self, email):
        with pytest.raises(ValidationFailure):
            validate_email(email)

    @pytest.mark.parametrize("phone", ["0912345678", "+84912345678", "84387654321"])
    def test_valid_phones(self, phone):
        validate_vietnamese_phone(phone)

    @pytest.mark.parametrize("phone", ["", "0212345678", "091234567", "+1 555 1234"])
    def test_invalid_phones(self, phone):
        with pytest.raises(ValidationFailure):
            validate_vietnamese_phone(phone)

    def test_price_bounds(self):
        validate_price(1_000_000)
        validate_price(0.5)
        for price in (0, -1, 1_000_001):
            with pytest.raises(ValidationFailure):
                validate_price(price)

    def test_experience_bounds(self):
        validate_experience_years(0)
        validate_experience_years(50)
        for years in (-1, 51):
            with pytest.raises(ValidationFailure):
                validate_experience_years(years)

    def test_bio_length(self):
        validate_bio("x" * 500)
        validate_bio(None)
        with pytest.raises(ValidationFailure):
            validate_bio("x" * 501)

    def test_services(self):
        validate_services(["elder_care", "baby-sitting"])
        with pytest.raises(ValidationFailure, match="at least one service"):
            validate_services([])
        with pytest.raises(ValidationFailure, match="more than 10"):
            validate_services([f"service{i}" for i in range(11)])
        with pytest.raises(ValidationFailure, match="Duplicate"):
            validate_services(["cleaning", "cleaning"])
        with pytest.raises(ValidationFailure, match="Invalid service ID format"):
            validate_services(["house cleaning"])

    def test_dates(self):
        validate_dates(["2026-03-10", "2026-12-31"])
        with pytest.raises(ValidationFailure):
            validate_dates(["2026-3-10"])
        with pytest.raises(ValidationFailure):
            validate_dates(["not-a-date"])
        with pytest.raises(ValidationFailure):
            validate_dates([])

    def test_full_profile(self):
        profile = PartnerProfile(
            uid="partner-1",
            name="Tran Thi B",
            email="b@carenow.vn",
            phone="0987654321",
            price_per_hour=150_000,
            experience_years=5,
            services=["elder_care"],
            working_hours={"monday": ["08:00-12:00"]},
        )
        validate_partner_profile(profile)

        with pytest.raises(ValidationFailure, match="Invalid email format"):
            validate_partner_profile(profile.model_copy(update={"email": "broken"}))
