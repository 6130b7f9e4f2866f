from chain_cli.certificates.schemas import (
    CERTIFICATE_VERSION,
    DELEGATION_ISSUED_INTENT,
    DELEGATION_TYPE,
    DelegationCertificate,
)

__all__ = [
    "CERTIFICATE_VERSION",
    "DELEGATION_TYPE",
    "DELEGATION_ISSUED_INTENT",
    "DelegationCertificate",
]
