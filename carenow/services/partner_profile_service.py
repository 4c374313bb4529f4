"""
Partner profile service for onboarding partners and managing their services
"""

import logging
from typing import List

from carenow.core.config import Settings
from carenow.core.exceptions import Failure, NotFoundFailure, ServerFailure, ValidationFailure
from carenow.db.document_store import DocumentStore, StoreTransaction
from carenow.repositories.store_partner_job_repository import AVAILABILITY_COLLECTION
from carenow.schemas.availability import PartnerAvailability
from carenow.schemas.partner import PartnerProfile
from carenow.services.validation import validate_partner_id, validate_partner_profile, validate_services
from carenow.utils.clock import Clock

logger = logging.getLogger(__name__)

PARTNERS_COLLECTION = "partners"


class PartnerProfileService:
    """Service for partner profiles stored in the partners collection"""

    def __init__(self, store: DocumentStore, clock: Clock, settings: Settings):
        self.store = store
        self.clock = clock
        self.settings = settings

    async def create_partner_profile(self, profile: PartnerProfile) -> PartnerProfile:
        """
        Validate and store a new partner profile.

        The partner's availability document is seeded with the profile's
        working hours, so a new partner is bookable right away.

        Args:
            profile: Profile to create

        Returns:
            Stored profile with timestamps set

        Raises:
            ValidationFailure: If any field is invalid or the partner already exists
        """
        validate_partner_profile(profile)
        now = self.clock.now()
        stored = profile.model_copy(update={
            "working_hours": {day.lower(): slots for day, slots in profile.working_hours.items()},
            "created_at": now,
            "updated_at": now,
        })

        async def operation(tx: StoreTransaction) -> PartnerProfile:
            if await tx.get(PARTNERS_COLLECTION, profile.uid) is not None:
                raise ValidationFailure(f"Partner {profile.uid} already exists")
            await tx.set(PARTNERS_COLLECTION, profile.uid, stored.to_document())

            availability = PartnerAvailability.default_for(profile.uid, now, self.settings.DEFAULT_WORKING_HOURS_SLOTS)
            availability.working_hours = stored.working_hours
            await tx.set(AVAILABILITY_COLLECTION, profile.uid, availability.to_document(), merge=True)
            return stored

        try:
            created = await self.store.run_transaction(operation)
        except Failure:
            raise
        except Exception as e:
            logger.error(f"Failed to create partner profile: {e}")
            raise ServerFailure(f"Failed to create partner profile: {e}") from e

        logger.info(f"Created partner profile {profile.uid}")
        return created

    async def get_partner_profile(self, uid: str) -> PartnerProfile:
        validate_partner_id(uid)
        try:
            snapshot = await self.store.get(PARTNERS_COLLECTION, uid)
        except Exception as e:
            logger.error(f"Failed to get partner profile: {e}")
            raise ServerFailure(f"Failed to get partner profile: {e}") from e

        if snapshot is None:
            raise NotFoundFailure(f"Partner {uid} not found")
        return PartnerProfile.from_document(snapshot.id, snapshot.data)

    async def update_partner_services(self, uid: str, services: List[str]) -> PartnerProfile:
        """
        Replace the services a partner offers.

        Raises:
            ValidationFailure: If the list is empty, too long, malformed or has duplicates
            NotFoundFailure: If the partner does not exist
        """
        validate_partner_id(uid)
        validate_services(services)

        try:
            snapshot = await self.store.update(
                PARTNERS_COLLECTION,
                uid,
                {"services": services, "updatedAt": self.clock.now()}
            )
        except NotFoundFailure:
            raise NotFoundFailure(f"Partner {uid} not found") from None
        except Failure:
            raise
        except Exception as e:
            logger.error(f"Failed to update partner services: {e}")
            raise ServerFailure(f"Failed to update partner services: {e}") from e

        logger.info(f"Partner {uid} now offers {len(services)} service(s)")
        return PartnerProfile.from_document(snapshot.id, snapshot.data)
