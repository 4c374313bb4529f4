"""
Tests for partner onboarding and service updates
"""

import pytest

from carenow.core.exceptions import NotFoundFailure, ValidationFailure
from carenow.schemas.partner import PartnerProfile


def make_profile(**overrides) -> PartnerProfile:
    data = {
        "uid": "partner-7",
        "name": "Le Thi C",
        "email": "c@carenow.vn",
        "phone": "0901234567",
        "price_per_hour": 120_000,
        "experience_years": 3,
        "bio": "Certified nurse",
        "services": ["elder_care", "post_surgery"],
        "working_hours": {"Monday": ["08:00-12:00"], "wednesday": ["13:00-17:00"]},
    }
    data.update(overrides)
    return PartnerProfile(**data)


async def test_create_profile_seeds_availability(profile_service, service):
    created = await profile_service.create_partner_profile(make_profile())

    assert created.created_at is not None
    assert created.working_hours == {"monday": ["08:00-12:00"], "wednesday": ["13:00-17:00"]}

    availability = await service.get_partner_availability("partner-7")
    assert availability.working_hours == {"monday": ["08:00-12:00"], "wednesday": ["13:00-17:00"]}
    assert availability.is_available


async def test_profile_round_trip(profile_service):
    await profile_service.create_partner_profile(make_profile())
    profile = await profile_service.get_partner_profile("partner-7")

    assert profile.name == "Le Thi C"
    assert profile.price_per_hour == 120_000
    assert profile.services == ["elder_care", "post_surgery"]


async def test_duplicate_profile_rejected(profile_service):
    await profile_service.create_partner_profile(make_profile())
    with pytest.raises(ValidationFailure, match="already exists"):
        await profile_service.create_partner_profile(make_profile())


@pytest.mark.parametrize("overrides", [
    {"email": "not-an-email"},
    {"phone": "12345"},
    {"price_per_hour": 0},
    {"experience_years": 60},
    {"services": []},
    {"working_hours": {"monday": ["08:00-13:00"]}},
])
async def test_invalid_profiles_rejected(profile_service, overrides):
    with pytest.raises(ValidationFailure):
        await profile_service.create_partner_profile(make_profile(**overrides))


async def test_update_services(profile_service):
    await profile_service.create_partner_profile(make_profile())
    updated = await profile_service.update_partner_services("partner-7", ["cleaning"])
    assert updated.services == ["cleaning"]

    with pytest.raises(ValidationFailure):
        await profile_service.update_partner_services("partner-7", ["cleaning", "cleaning"])


async def test_missing_profile(profile_service):
    with pytest.raises(NotFoundFailure):
        await profile_service.get_partner_profile("nobody")
    with pytest.raises(NotFoundFailure):
        await profile_service.update_partner_services("nobody", ["cleaning"])
