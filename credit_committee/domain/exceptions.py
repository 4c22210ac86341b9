"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class UnknownProfileError(DomainException):
    """Scorer invoked with a borrower profile absent from the configuration table"""

    def __init__(self, profile: str):
        super().__init__(f"Unknown score profile: {profile!r}")
        self.profile = profile


class DossierNotFoundError(DomainException):
    """No evaluation or audit trail recorded for this dossier"""

    pass
