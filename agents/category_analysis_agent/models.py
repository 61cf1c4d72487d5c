"""
State model for the category analysis workflow.
"""

from typing import Any, List, Optional, TypedDict

from models.schemas import MarketSnapshot


class CategoryAnalysisState(TypedDict, total=False):
    """
    State for a single category analysis run.
    
    Flow: build prompt → query provider → extract bullet points → finalize
    """
    # Input
    website: str
    snapshot: MarketSnapshot
    category: str
    provider: Optional[str]
    classifier: Any  # ResponseClassifier
    
    # Processing
    prompt: str
    response_text: str
    ai_available: bool
    
    # Output
    points: List[str]
    extraction_strategy: str  # structured | prefilter | sentences | empty | unparsed | none
    source: str  # ai | fallback | placeholder
    
    # Metadata
    errors: List[str]
    completed: bool
