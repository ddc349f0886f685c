"""Exception classes for KPI operations."""


class KPIError(Exception):
    """Base exception for this module."""

    pass


class NotFound(KPIError):
    """Raised when a template, entry or member does not exist."""

    pass


class AlreadyExists(KPIError):
    """Raised when an entry already exists for the employee, period, template and unit."""

    pass


class KPIValidationError(KPIError):
    """Raised when submitted data does not fit the template or payload schema.

    ``errors`` carries field-level details when they are available, for
    example a serializer's ``errors`` dict.
    """

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or {}


class UnknownItem(KPIValidationError):
    """Raised when a value names a KPI item that the template does not define."""

    def __init__(self, names):
        self.names = list(names)
        super().__init__(f"Invalid KPI items: {', '.join(self.names)}")


class MissingItem(KPIValidationError):
    """Raised when a complete submission lacks some template items."""

    def __init__(self, names):
        self.names = list(names)
        super().__init__(f"Missing required KPI items: {', '.join(self.names)}")


class InvalidValueType(KPIValidationError):
    """Raised when a value has the wrong type for its KPI type."""

    pass


class OutOfRange(KPIValidationError):
    """Raised when a numeric value falls outside its KPI type's domain."""

    pass


class UnknownKpiType(KPIError):
    """Raised when a template item carries a KPI type outside the supported set."""

    pass


class ConfigNotFound(KPIError):
    """Raised when no CSV parser configuration exists for a department and role."""

    pass


class MalformedCsv(KPIError):
    """Raised when CSV text lacks the header rows or the officer-name column."""

    pass


class ExternalServiceFailure(KPIError):
    """Raised when the identity service is unreachable or answers with an error."""

    pass
