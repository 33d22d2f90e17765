from copilot_terminal.auth.credential_store import CredentialRecord, CredentialStore
from copilot_terminal.auth.device_flow import DeviceCode, IdentityAuthenticator
from copilot_terminal.auth.token_broker import ServiceTokenBroker

__all__ = [
    "CredentialRecord",
    "CredentialStore",
    "DeviceCode",
    "IdentityAuthenticator",
    "ServiceTokenBroker",
]
