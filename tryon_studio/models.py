from typing import Optional

from pydantic import BaseModel


# Fields are optional at the schema level so a missing value is reported with
# the endpoint's own message instead of a generic validation error.
class CombinationRequest(BaseModel):
    image1_url: Optional[str] = None
    image1_title: Optional[str] = None
    image2_url: Optional[str] = None
    image2_title: Optional[str] = None


class VideoRequest(BaseModel):
    signed_url: Optional[str] = None


class PersonalTryonRequest(BaseModel):
    clothing_id: Optional[str] = None
    user_image_id: Optional[str] = None
    referer_url: Optional[str] = None


class SignedUrlResponse(BaseModel):
    signedUrl: str


class LimitExceededResponse(BaseModel):
    limitExceeded: bool = True


class ErrorResponse(BaseModel):
    error: str
