"""Core components of the conversational search refinement engine."""

from src.search.assembler import ResultAssembler
from src.search.context import TurnContext
from src.search.criteria import CriteriaExtractor
from src.search.drafting import QueryDraftingEngine
from src.search.enforcer import ConstraintEnforcer
from src.search.parsing import ResponseParser
from src.search.relaxation import RelaxationController, RelaxationState
from src.search.summarizer import ContextSummarizer

__all__ = [
    "ConstraintEnforcer",
    "ContextSummarizer",
    "CriteriaExtractor",
    "QueryDraftingEngine",
    "RelaxationController",
    "RelaxationState",
    "ResponseParser",
    "ResultAssembler",
    "TurnContext",
]
