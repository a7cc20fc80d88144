# propsync/services/db_service.py

import logging

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore import FieldFilter

from propsync.constants import (
    INVOICES_COLLECTION,
    LEASE_STATUS_ACTIVE,
    ORGANIZATIONS_COLLECTION,
    PAYMENTS_COLLECTION,
    PROPERTIES_COLLECTION,
    RENT_COLLECTION,
    ROLES_COLLECTION,
    USERS_COLLECTION,
)
from propsync.exceptions import NotFoundError, PermissionDeniedError, StoreError, ValidationError
from propsync.logic.org_scope_logic import chunked
from propsync.logic.space_logic import build_space_patch, id_of, space_at

log = logging.getLogger(__name__)

def snapshot_to_dict(snapshot) -> dict:
    """Document data with the document id under 'id'."""
    data = snapshot.to_dict() or {}
    data['id'] = snapshot.id
    return data

def _wrap_store_error(operation: str, record_id: str | None, error: Exception):
    if isinstance(error, gcp_exceptions.PermissionDenied):
        return PermissionDeniedError(operation, record_id)
    if isinstance(error, gcp_exceptions.NotFound):
        return NotFoundError(operation.split()[-1].capitalize(), record_id)
    return StoreError(operation, record_id, error)

def _raise_store_error(operation: str, record_id: str | None, error: Exception):
    wrapped = _wrap_store_error(operation, record_id, error)
    log.error(f"{wrapped.message}")
    raise wrapped from error

def _stream(query, operation: str) -> list:
    try:
        return [snapshot_to_dict(doc) for doc in query.stream()]
    except gcp_exceptions.GoogleAPICallError as e:
        _raise_store_error(operation, None, e)

# --- Reads ---

def get_document(db, collection: str, doc_id: str) -> dict | None:
    """Gets one document by id, or None when it does not exist."""
    try:
        snapshot = db.collection(collection).document(doc_id).get()
    except gcp_exceptions.GoogleAPICallError as e:
        _raise_store_error(f"read {collection}", doc_id, e)
    if not snapshot.exists:
        return None
    return snapshot_to_dict(snapshot)

def get_organization(db, organization_id: str) -> dict | None:
    return get_document(db, ORGANIZATIONS_COLLECTION, organization_id)

def get_property(db, property_id: str) -> dict | None:
    return get_document(db, PROPERTIES_COLLECTION, property_id)

def get_properties_by_ids(db, property_ids) -> tuple[dict, dict]:
    """
    Fetches properties one by one.
    Returns (properties, errors): properties maps id -> document for those found,
    errors maps id -> message for those whose fetch failed. Missing properties are
    in neither.
    """
    properties = {}
    errors = {}
    for property_id in property_ids:
        try:
            property_doc = get_property(db, property_id)
        except (StoreError, PermissionDeniedError) as e:
            errors[property_id] = e.message
            continue
        if property_doc:
            properties[property_id] = property_doc
    return properties, errors

def get_collection_for_organization(db, collection: str, organization_id: str) -> list:
    query = db.collection(collection).where(filter=FieldFilter('organizationId', '==', organization_id))
    return _stream(query, f"query {collection}")

def get_properties_for_organization(db, organization_id: str) -> list:
    return get_collection_for_organization(db, PROPERTIES_COLLECTION, organization_id)

def get_all_documents(db, collection: str) -> list:
    return _stream(db.collection(collection), f"read {collection}")

def get_documents_sample(db, collection: str, limit: int) -> list:
    return _stream(db.collection(collection).limit(limit), f"sample {collection}")

def get_active_rent_records(db, organization_id: str | None = None) -> list:
    query = db.collection(RENT_COLLECTION).where(filter=FieldFilter('status', '==', LEASE_STATUS_ACTIVE))
    if organization_id:
        query = query.where(filter=FieldFilter('organizationId', '==', organization_id))
    return _stream(query, 'query rent')

def get_rent_for_properties(db, property_ids: list) -> list:
    """
    Rent records whose propertyId is in `property_ids`, querying in chunks of at most
    ten ids and merging the results.
    """
    rent_records = {}
    for chunk in chunked(list(property_ids)):
        query = db.collection(RENT_COLLECTION).where(filter=FieldFilter('propertyId', 'in', chunk))
        for rent in _stream(query, 'query rent'):
            rent_records[rent['id']] = rent
    return list(rent_records.values())

def find_user_by_email(db, email: str) -> dict:
    """Returns the first user with this email. Raises NotFoundError if there is none."""
    query = db.collection(USERS_COLLECTION).where(filter=FieldFilter('email', '==', email)).limit(1)
    users = _stream(query, 'query users')
    if not users:
        raise NotFoundError('User', email)
    return users[0]

def get_roles(db, name: str | None = None) -> list:
    query = db.collection(ROLES_COLLECTION)
    if name:
        query = query.where(filter=FieldFilter('name', '==', name))
    return _stream(query, 'query roles')

def find_invoice_by_number(db, invoice_number: str) -> dict:
    query = db.collection(INVOICES_COLLECTION).where(filter=FieldFilter('invoiceNumber', '==', invoice_number)).limit(1)
    invoices = _stream(query, 'query invoices')
    if not invoices:
        raise NotFoundError('Invoice', invoice_number)
    return invoices[0]

def get_payments_for_invoice(db, invoice_id: str) -> list:
    query = db.collection(PAYMENTS_COLLECTION).where(filter=FieldFilter('invoiceId', '==', invoice_id))
    return _stream(query, 'query payments')

def get_payments_for_rent(db, rent_id: str, property_id: str) -> list:
    query = (db.collection(PAYMENTS_COLLECTION)
             .where(filter=FieldFilter('rentId', '==', rent_id))
             .where(filter=FieldFilter('propertyId', '==', property_id)))
    return _stream(query, 'query payments')

# --- Writes ---

def document_ref(db, collection: str, doc_id: str):
    return db.collection(collection).document(doc_id)

def set_document(db, collection: str, doc_id: str, data: dict, merge: bool = False):
    try:
        document_ref(db, collection, doc_id).set(data, merge=merge)
    except gcp_exceptions.GoogleAPICallError as e:
        _raise_store_error(f"write {collection}", doc_id, e)

def _update(db, collection: str, doc_id: str, data: dict, operation: str) -> dict:
    ref = document_ref(db, collection, doc_id)
    stamped = dict(data)
    stamped['updatedAt'] = firestore.SERVER_TIMESTAMP
    try:
        ref.update(stamped)
        return snapshot_to_dict(ref.get())
    except gcp_exceptions.GoogleAPICallError as e:
        _raise_store_error(operation, doc_id, e)

def update_rent(db, rent_id: str, patch: dict) -> dict:
    """Applies a patch to a rent record and returns the updated record."""
    return _update(db, RENT_COLLECTION, rent_id, patch, 'update rent')

def update_property(db, property_id: str, data: dict) -> dict:
    """Applies a patch to a property and returns the updated property."""
    return _update(db, PROPERTIES_COLLECTION, property_id, data, 'update property')

def create_rent(db, data: dict, space_update: dict | None = None) -> dict:
    """
    Creates a rent record with a generated id and returns it.
    `space_update` (floor_index, space_index, field_patch and optionally
    expected_space_id) patches the record's space in the same transaction, so the
    rent record and the space are written together or not at all.
    """
    ref = db.collection(RENT_COLLECTION).document()
    record = dict(data)
    record['createdAt'] = firestore.SERVER_TIMESTAMP
    record['updatedAt'] = firestore.SERVER_TIMESTAMP
    if space_update is not None:
        update_space(db, data['propertyId'], new_rent=(ref, record), **space_update)
    else:
        try:
            ref.set(record)
        except gcp_exceptions.GoogleAPICallError as e:
            _raise_store_error('create rent', ref.id, e)
    log.info(f"Created rent record {ref.id} for space {data.get('spaceId')}")
    try:
        return snapshot_to_dict(ref.get())
    except gcp_exceptions.GoogleAPICallError as e:
        _raise_store_error('read rent', ref.id, e)

def update_space(db, property_id: str, floor_index: int | None, space_index: int, field_patch: dict,
                 expected_space_id: str | None = None, new_rent=None) -> dict:
    """
    Applies `field_patch` to one space of a property inside a transaction, so a
    concurrent edit of the same property makes the transaction retry instead of
    being overwritten. `expected_space_id` guards against the arrays having been
    reordered since the caller read them.
    `new_rent` is an optional (document reference, data) pair created in the same
    transaction.
    Returns the field-path update that was written.
    """
    ref = document_ref(db, PROPERTIES_COLLECTION, property_id)

    @firestore.transactional
    def _apply(transaction):
        snapshot = ref.get(transaction=transaction)
        if not snapshot.exists:
            raise NotFoundError('Property', property_id)
        property_doc = snapshot_to_dict(snapshot)
        if expected_space_id is not None:
            current = space_at(property_doc, floor_index, space_index)
            if current is None or id_of(current) != expected_space_id:
                raise ValidationError("space moved or was removed", field='spaceId', value=expected_space_id)
        update = build_space_patch(property_doc, floor_index, space_index, field_patch)
        update['updatedAt'] = firestore.SERVER_TIMESTAMP
        if new_rent is not None:
            transaction.set(*new_rent)
        transaction.update(ref, update)
        return update

    try:
        return _apply(db.transaction())
    except gcp_exceptions.GoogleAPICallError as e:
        _raise_store_error('update property', property_id, e)
