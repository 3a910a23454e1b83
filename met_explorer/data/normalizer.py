"""
Normalization of raw MET API objects into the records the views display.

A raw object is the JSON returned by ``GET /objects/{id}``. Gallery cards use
ArtworkRecord, the detail view uses ArtworkDetail and the related-artworks
strip uses RelatedArtwork.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_ARTIST = "Unknown Artist"
DEFAULT_DEPARTMENT = "The Metropolitan Museum of Art"
UNTITLED = "Untitled"

MAX_ADDITIONAL_IMAGES = 5
MAX_TAGS = 10
RELATED_TITLE_LENGTH = 30


def _clean(value):
    """Strip strings and turn blank ones into None."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _object_id(raw):
    object_id = raw.get("objectID")
    if isinstance(object_id, bool) or not isinstance(object_id, int):
        return None
    return object_id


class ArtworkRecord(BaseModel):
    """
    One artwork as shown on a gallery card.
    Immutable once built by normalize().
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(description="MET Museum object ID")
    title: str = Field(description="Title of the artwork")
    artist: str = Field(UNKNOWN_ARTIST, description="Artist display name")
    department: str = Field(DEFAULT_DEPARTMENT, description="Museum department")
    image_url: str = Field(description="Preview image URL, full image when no preview exists")
    culture: Optional[str] = Field(None, description="Cultural origin")
    date: Optional[str] = Field(None, description="Date string (e.g., 'ca. 1503-1519')")
    medium: Optional[str] = Field(None, description="Materials used (e.g., 'Oil on canvas')")


class ArtworkDetail(BaseModel):
    """
    Everything the detail view shows for one artwork.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    title: str = UNTITLED
    artist: str = UNKNOWN_ARTIST
    artist_bio: Optional[str] = None
    artist_nationality: Optional[str] = None
    artist_dates: Optional[str] = None
    image_url: Optional[str] = None
    additional_images: List[str] = Field(default_factory=list)
    object_name: Optional[str] = None
    date: Optional[str] = None
    medium: Optional[str] = None
    dimensions: Optional[str] = None
    classification: Optional[str] = None
    culture: Optional[str] = None
    period: Optional[str] = None
    dynasty: Optional[str] = None
    geography: Optional[str] = None
    department: Optional[str] = None
    accession_number: Optional[str] = None
    credit_line: Optional[str] = None
    gallery_number: Optional[str] = None
    is_public_domain: bool = False
    rights_and_reproduction: Optional[str] = None
    object_url: Optional[str] = None
    wikidata_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class RelatedArtwork(BaseModel):
    """Thumbnail entry in the related-artworks strip."""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    image_url: str


def normalize(raw: Any) -> Optional[ArtworkRecord]:
    """
    Convert one raw API object into an ArtworkRecord.

    Objects without an integer objectID, a title or a primary image are
    unusable and yield None.

    Args:
        raw (dict): Object data as returned by the API

    Returns:
        ArtworkRecord: The normalized record, or None when unusable
    """
    if not isinstance(raw, dict):
        return None

    object_id = _object_id(raw)
    title = _clean(raw.get("title"))
    primary_image = _clean(raw.get("primaryImage"))
    if object_id is None or not title or not primary_image:
        return None

    return ArtworkRecord(
        id=object_id,
        title=title,
        artist=_clean(raw.get("artistDisplayName")) or UNKNOWN_ARTIST,
        department=_clean(raw.get("department")) or DEFAULT_DEPARTMENT,
        image_url=_clean(raw.get("primaryImageSmall")) or primary_image,
        culture=_clean(raw.get("culture")),
        date=_clean(raw.get("objectDate")),
        medium=_clean(raw.get("medium")),
    )


def build_geography(raw):
    """Join city, state and country, adding region only when not already listed."""
    parts = [part for part in (_clean(raw.get(key)) for key in ("city", "state", "country")) if part]
    region = _clean(raw.get("region"))
    if region and region not in parts:
        parts.append(region)
    return ", ".join(parts) or None


def _artist_dates(raw):
    begin = _clean(str(raw.get("artistBeginDate") or ""))
    end = _clean(str(raw.get("artistEndDate") or ""))
    if not begin and not end:
        return None
    return f"{begin or '?'} - {end or '?'}"


def _tag_terms(tags):
    if not isinstance(tags, list):
        return []
    terms = []
    for tag in tags:
        term = tag.get("term") if isinstance(tag, dict) else tag
        term = _clean(term) if isinstance(term, str) else None
        if term:
            terms.append(term)
    return terms[:MAX_TAGS]


def normalize_detail(raw: Any) -> Optional[ArtworkDetail]:
    """
    Convert one raw API object into the detail view's ArtworkDetail.

    Unlike normalize(), a missing title or image is tolerated; only a missing
    objectID makes the object unusable.

    Args:
        raw (dict): Object data as returned by the API

    Returns:
        ArtworkDetail: The detail record, or None when the object has no ID
    """
    if not isinstance(raw, dict):
        return None
    object_id = _object_id(raw)
    if object_id is None:
        return None

    artist = _clean(raw.get("artistDisplayName"))
    additional_images = []
    images = raw.get("additionalImages")
    for image in images if isinstance(images, list) else []:
        image = _clean(image) if isinstance(image, str) else None
        if image:
            additional_images.append(image)
    additional_images = additional_images[:MAX_ADDITIONAL_IMAGES]

    gallery_number = _clean(raw.get("GalleryNumber"))
    return ArtworkDetail(
        id=object_id,
        title=_clean(raw.get("title")) or UNTITLED,
        artist=artist or UNKNOWN_ARTIST,
        # Bio, nationality and dates only mean something with a named artist
        artist_bio=_clean(raw.get("artistDisplayBio")) if artist else None,
        artist_nationality=_clean(raw.get("artistNationality")) if artist else None,
        artist_dates=_artist_dates(raw) if artist else None,
        image_url=_clean(raw.get("primaryImage")),
        additional_images=additional_images,
        object_name=_clean(raw.get("objectName")),
        date=_clean(raw.get("objectDate")),
        medium=_clean(raw.get("medium")),
        dimensions=_clean(raw.get("dimensions")),
        classification=_clean(raw.get("classification")),
        culture=_clean(raw.get("culture")),
        period=_clean(raw.get("period")),
        dynasty=_clean(raw.get("dynasty")),
        geography=build_geography(raw),
        department=_clean(raw.get("department")),
        accession_number=_clean(raw.get("accessionNumber")),
        credit_line=_clean(raw.get("creditLine")),
        gallery_number=str(gallery_number) if gallery_number is not None else None,
        is_public_domain=bool(raw.get("isPublicDomain", False)),
        rights_and_reproduction=_clean(raw.get("rightsAndReproduction")),
        object_url=_clean(raw.get("objectURL")),
        wikidata_url=_clean(raw.get("objectWikidata_URL")),
        tags=_tag_terms(raw.get("tags")),
    )


def truncate_title(title, length=RELATED_TITLE_LENGTH):
    if len(title) <= length:
        return title
    return title[:length - 3] + "..."


def to_related(record: ArtworkRecord) -> RelatedArtwork:
    return RelatedArtwork(id=record.id, title=truncate_title(record.title), image_url=record.image_url)
