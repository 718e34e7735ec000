# Pallet and call names used when composing the governance proposal.
SYSTEM_PALLET = "System"
AUTHORIZE_UPGRADE_CALL = "authorize_upgrade"

WHITELIST_PALLET = "Whitelist"
WHITELIST_CALL = "whitelist_call"
DISPATCH_WHITELISTED_CALL_WITH_PREIMAGE = "dispatch_whitelisted_call_with_preimage"

TECHNICAL_COMMITTEE_PALLET = "TechnicalCommittee"
PROPOSE_CALL = "propose"

REFERENDA_PALLET = "Referenda"
SUBMIT_CALL = "submit"
WHITELISTED_CALLER_ORIGIN = {"Origins": "WhitelistedCaller"}

PROXY_PALLET = "Proxy"
PROXY_CALL = "proxy"
GOVERNANCE_PROXY_TYPE = "Governance"

# Node connection
CONNECT_TIMEOUT_SECONDS = 5

# Block explorer link printed after inclusion
EXPLORER_URL_TEMPLATE = "https://polkadot.js.org/apps/?rpc={rpc}#/explorer/query/{block_hash}"

# Signing key
PRIVATE_KEY_ENV = "GOV_PROXY_KEY"
PRIVATE_KEY_LENGTH_BYTES = 32

# Process exit codes
EXIT_SUCCESS = 0
EXIT_USAGE = 1
EXIT_FAILURE = 255
