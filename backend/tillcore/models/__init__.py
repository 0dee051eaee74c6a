from .tenancy import BusinessUnit, Staff
from .shifts import Shift, Sale
from .customers import Customer, CreditLedgerEntry
from .alerts import Alert

__all__ = [
    'BusinessUnit', 'Staff',
    'Shift', 'Sale',
    'Customer', 'CreditLedgerEntry',
    'Alert',
]
