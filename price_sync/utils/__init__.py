"""Price Sync Utilities"""

from .validation import RuleValidator
from .audit_logger import PricingAuditLogger
from .reporting import ResolutionReport

__all__ = [
    'RuleValidator',
    'PricingAuditLogger',
    'ResolutionReport'
]
