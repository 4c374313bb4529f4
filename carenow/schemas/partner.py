"""
Partner profile schemas
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from carenow.db.document_store import encode_value


class PartnerProfile(BaseModel):
    """Public profile of a care partner"""
    uid: str = Field(..., description="Partner identifier")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Contact email")
    phone: str = Field(..., description="Vietnamese phone number")
    price_per_hour: float = Field(..., alias="pricePerHour", description="Hourly rate in VND")
    experience_years: int = Field(0, alias="experienceYears")
    bio: Optional[str] = Field(None, description="Short self description")
    services: List[str] = Field(default_factory=list, description="Service identifiers the partner offers")
    working_hours: Dict[str, List[str]] = Field(default_factory=dict, alias="workingHours")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True

    def to_document(self) -> Dict[str, Any]:
        return encode_value(self.model_dump(by_alias=True, exclude={"uid"}))

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "PartnerProfile":
        return cls.model_validate({**data, "uid": doc_id})


class UpdateServicesRequest(BaseModel):
    services: List[str] = Field(..., description="Replacement list of service identifiers")
