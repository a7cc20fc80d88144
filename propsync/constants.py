# propsync/constants.py

ORGANIZATIONS_COLLECTION = 'organizations'
USERS_COLLECTION = 'users'
ROLES_COLLECTION = 'roles'
PROPERTIES_COLLECTION = 'properties'
RENT_COLLECTION = 'rent'
PAYMENTS_COLLECTION = 'payments'
INVOICES_COLLECTION = 'invoices'
TENANTS_COLLECTION = 'tenants'

# Firestore limits
MAX_BATCH_SIZE = 500
IN_QUERY_LIMIT = 10

# Currency amounts closer than this are treated as equal
RENT_EPSILON = 0.01

EXPIRING_SOON_DAYS = 30
DEFAULT_RENEWAL_MONTHS = 12

PROPERTY_TYPE_BUILDING = 'building'
PROPERTY_TYPE_LAND = 'land'

SPACE_STATUS_VACANT = 'vacant'
SPACE_STATUS_OCCUPIED = 'occupied'

LEASE_STATUS_ACTIVE = 'active'
LEASE_STATUS_EXPIRED = 'expired'
LEASE_STATUS_TERMINATED = 'terminated'

LEASE_PERIOD_MONTHLY = 'monthly'
LEASE_PERIOD_YEARLY = 'yearly'
LEASE_PERIOD_CUSTOM = 'custom'

PAYMENT_STATUS_COMPLETED = 'completed'

INVOICE_STATUS_PENDING = 'pending'
INVOICE_STATUS_PARTIALLY_PAID = 'partially_paid'
INVOICE_STATUS_PAID = 'paid'
INVOICE_STATUS_OVERDUE = 'overdue'
INVOICE_STATUS_CANCELLED = 'cancelled'
