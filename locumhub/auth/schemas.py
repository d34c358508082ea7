"""Auth response schemas."""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict

from locumhub.accounts.schemas import OrganisationBrief


class CurrentUserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    user_type: str
    profession: Optional[str] = None
    onboarding_status: Optional[str] = None
    organisation: Optional[OrganisationBrief] = None
    permissions: dict[str, str] = {}
