from .contract_terms import ContractTerms
from .delivery_row import DeliveryRow
from .report import EngineReport

__all__ = ["ContractTerms", "DeliveryRow", "EngineReport"]
