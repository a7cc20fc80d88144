from dataclasses import dataclass
import logging

from propsync.constants import PROPERTY_TYPE_BUILDING, PROPERTY_TYPE_LAND
from propsync.exceptions import DuplicateSpaceIdError, ValidationError

# Set up a module-level logger
log = logging.getLogger(__name__)

SPACE_KIND_BUILDING = PROPERTY_TYPE_BUILDING
SPACE_KIND_LAND = PROPERTY_TYPE_LAND

# Field names per variant: (id, name, rent)
_FIELDS = {
    SPACE_KIND_BUILDING: ('spaceId', 'spaceName', 'monthlyRent'),
    SPACE_KIND_LAND: ('squatterId', 'assignedArea', 'monthlyPayment'),
}


@dataclass(frozen=True)
class SpaceRef:
    """
    A located space inside a property document.
    `kind` is 'building' (a floor space) or 'land' (a squatter area);
    `floor_index` is None for land.
    """
    kind: str
    space: dict
    space_index: int
    floor_index: int | None = None


def id_of(ref: SpaceRef):
    return ref.space.get(_FIELDS[ref.kind][0])


def name_of(ref: SpaceRef):
    return ref.space.get(_FIELDS[ref.kind][1])


def rent_of(ref: SpaceRef):
    return ref.space.get(_FIELDS[ref.kind][2])


def iter_spaces(property_doc: dict | None):
    """Yields a SpaceRef for every space or squatter of a property, in array order."""
    if not property_doc:
        return
    property_type = property_doc.get('type')
    if property_type == PROPERTY_TYPE_BUILDING:
        floors = (property_doc.get('buildingDetails') or {}).get('floors') or []
        for floor_index, floor in enumerate(floors):
            for space_index, space in enumerate((floor or {}).get('spaces') or []):
                yield SpaceRef(SPACE_KIND_BUILDING, space, space_index, floor_index)
    elif property_type == PROPERTY_TYPE_LAND:
        squatters = (property_doc.get('landDetails') or {}).get('squatters') or []
        for space_index, squatter in enumerate(squatters):
            yield SpaceRef(SPACE_KIND_LAND, squatter, space_index)


def find_duplicate_space_ids(property_doc: dict | None) -> dict:
    """Returns {space_id: occurrences} for every id that appears more than once."""
    counts = {}
    for ref in iter_spaces(property_doc):
        space_id = id_of(ref)
        if space_id:
            counts[space_id] = counts.get(space_id, 0) + 1
    return {space_id: count for space_id, count in counts.items() if count > 1}


def resolve_space(property_doc: dict | None, space_id: str | None) -> SpaceRef | None:
    """
    Locates the space a rent record points at.
    Returns None when the property is missing or no space carries the id; historical
    records may reference deleted spaces, so callers skip rather than fail.
    Raises DuplicateSpaceIdError when the id is not unique within the property.
    """
    if not property_doc or not space_id:
        return None

    matches = [ref for ref in iter_spaces(property_doc) if id_of(ref) == space_id]
    if not matches:
        return None
    if len(matches) > 1:
        raise DuplicateSpaceIdError(property_doc.get('id'), space_id, len(matches))
    return matches[0]


def space_at(property_doc: dict | None, floor_index: int | None, space_index: int) -> SpaceRef | None:
    for ref in iter_spaces(property_doc):
        if ref.floor_index == floor_index and ref.space_index == space_index:
            return ref
    return None


def build_space_patch(property_doc: dict, floor_index: int | None, space_index: int, field_patch: dict) -> dict:
    """
    Builds the nested-field update that applies `field_patch` to one space.
    Only the array that holds the space is rewritten; Firestore cannot address
    array elements by index, so the containing array is the smallest unit.
    Returns a dict keyed by Firestore field path.
    """
    if not field_patch:
        raise ValidationError("Nothing to update", field='field_patch')

    property_type = property_doc.get('type')
    if property_type == PROPERTY_TYPE_BUILDING:
        if floor_index is None:
            raise ValidationError("floor index is required for building spaces", field='floor_index')
        floors = [dict(floor) for floor in (property_doc.get('buildingDetails') or {}).get('floors') or []]
        if not 0 <= floor_index < len(floors):
            raise ValidationError("floor index out of range", field='floor_index', value=floor_index)
        spaces = [dict(space) for space in floors[floor_index].get('spaces') or []]
        if not 0 <= space_index < len(spaces):
            raise ValidationError("space index out of range", field='space_index', value=space_index)
        spaces[space_index] = {**spaces[space_index], **field_patch}
        floors[floor_index]['spaces'] = spaces
        return {'buildingDetails.floors': floors}

    if property_type == PROPERTY_TYPE_LAND:
        squatters = [dict(squatter) for squatter in (property_doc.get('landDetails') or {}).get('squatters') or []]
        if not 0 <= space_index < len(squatters):
            raise ValidationError("squatter index out of range", field='space_index', value=space_index)
        squatters[space_index] = {**squatters[space_index], **field_patch}
        return {'landDetails.squatters': squatters}

    raise ValidationError("property has no nested spaces", field='type', value=property_type)
