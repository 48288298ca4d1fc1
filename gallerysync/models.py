from dataclasses import dataclass
from typing import Optional, Union

Timestamp = Union[int, float]

APPROVED = "approved"


def is_timestamp(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class PhotoRecord:
    """
    One record as returned by the CloudKit query endpoint.
    Missing asset URLs stay None; the reconciler decides what to do with them.
    """

    record_name: str
    status: Optional[str]
    thumbnail_url: Optional[str]
    image_url: Optional[str]
    location_name: str
    capture_date: Timestamp

    @property
    def is_approved(self) -> bool:
        # The query already filters on status, so an absent field counts as approved.
        return self.status is None or self.status == APPROVED


@dataclass(frozen=True)
class PhotoDescriptor:
    """A manifest entry: one synced photo and where its files live."""

    id: str
    location_name: str
    capture_date: Timestamp
    thumbnail: str
    image: str

    @classmethod
    def from_dict(cls, data: dict) -> "PhotoDescriptor":
        capture_date = data.get("captureDate", 0)
        if not is_timestamp(capture_date):
            raise TypeError(f"captureDate must be a number, got {capture_date!r}")
        return cls(
            id=data["id"],
            location_name=data.get("locationName", "Unknown"),
            capture_date=capture_date,
            thumbnail=data["thumbnail"],
            image=data["image"],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "locationName": self.location_name,
            "captureDate": self.capture_date,
            "thumbnail": self.thumbnail,
            "image": self.image,
        }


@dataclass
class SyncResult:
    added: int = 0
    removed: int = 0
    kept: int = 0
    failed: int = 0
