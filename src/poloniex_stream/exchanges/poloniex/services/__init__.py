from .mappings import PoloniexMappings, currency, currency_pair
from .signature import sign, signed_params, canonical_query

__all__ = [
    'PoloniexMappings',
    'currency',
    'currency_pair',
    'sign',
    'signed_params',
    'canonical_query',
]
