from .drawers import CashDrawer, CashTransaction
from .transfers import TransferRequest, ReferenceSequence

__all__ = [
    'CashDrawer', 'CashTransaction',
    'TransferRequest', 'ReferenceSequence',
]
