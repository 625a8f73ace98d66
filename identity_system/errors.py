"""Exception hierarchy for the identity claim system."""


class IdentitySystemError(Exception):
    """Base class for all identity_system errors."""


class OracleError(IdentitySystemError):
    """The LLM oracle failed or returned nothing after all retry attempts."""


class RetrievalError(IdentitySystemError):
    """Candidate retrieval or embedding generation failed."""


class ClaimStoreError(IdentitySystemError):
    """A claim store mutation could not be applied."""


class ClaimNotFoundError(ClaimStoreError):
    """The referenced claim does not exist."""

    def __init__(self, claim_id: str):
        super().__init__(f"Claim not found: {claim_id}")
        self.claim_id = claim_id
