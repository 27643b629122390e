"""Customer lookups used by document workflows."""
from typing import Tuple

from invoicing.exceptions import CustomerNotFoundError
from invoicing.models import Customer


def get_customer_snapshot(session, customer_id) -> Tuple[int, str]:
    """
    Return (id, display name) of a customer, as snapshotted onto documents.

    Raises:
        CustomerNotFoundError: if no customer has this id.
    """
    try:
        customer_id = int(customer_id)
    except (TypeError, ValueError):
        raise CustomerNotFoundError(customer_id)

    name = session.query(Customer.name).filter(Customer.id == customer_id).scalar()
    if name is None:
        raise CustomerNotFoundError(customer_id)
    return customer_id, name
