"""Custom exceptions for the invoicing application."""


class InvoicingError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(InvoicingError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(InvoicingError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class CustomerNotFoundError(BusinessLogicError):
    """The customer referenced by a document does not exist."""
    def __init__(self, customer_id):
        super().__init__(f'Customer {customer_id} not found', payload={'customer_id': customer_id})
        self.customer_id = customer_id


class InvalidDateError(BusinessLogicError):
    """An issue, due or validity date could not be parsed."""
    def __init__(self, field, value):
        super().__init__(f'Invalid date for {field}: {value!r}', payload={'field': field})
        self.field = field
        self.value = value


class InvalidDiscountError(BusinessLogicError):
    """A discount clause is malformed or exceeds the amount it discounts."""


class InvalidLineItemError(BusinessLogicError):
    """A line item carries an illegal quantity, price or tax rate."""


class DocumentStateError(BusinessLogicError):
    """The document's status does not allow the requested operation."""
    def __init__(self, message, payload=None):
        super().__init__(message, status_code=409, payload=payload)


class NumberAllocationConflict(InvoicingError):
    """Raised when a document number could not be reserved after retrying."""
    def __init__(self, kind, attempts):
        super().__init__(
            f'Could not reserve a {kind} number after {attempts} attempts, please retry',
            status_code=503,
            payload={'kind': kind, 'attempts': attempts}
        )
        self.kind = kind
        self.attempts = attempts


class MalformedPriorNumberWarning(UserWarning):
    """The last number of a sequence has a non-numeric suffix and was skipped."""
