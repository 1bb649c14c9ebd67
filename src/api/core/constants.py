API_VERSION_HEADER = "X-Billing-API-Version"

# Reconciliation signal returned alongside a successful webhook response
SCHEDULE_RECONCILIATION_HEADER = "X-Schedule-Reconciliation"
RENEWAL_GAP = "renewal-gap"
CLEANUP_PENDING = "cleanup-pending"

# Largest webhook body accepted
MAX_WEBHOOK_PAYLOAD_BYTES = 64 * 1024
