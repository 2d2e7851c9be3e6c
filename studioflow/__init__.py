"""studioflow: step progression and campaign scheduling for content wizards."""

from .campaigns import CampaignRunner, GenerationResult
from .progression import ProgressionEngine, ProgressionState
from .scheduling import CampaignBatch, check_feasibility, distribute
from .persistence import CampaignStore, ProgressionStore, get_storage
from .session import ProgressionSession
from .steps import STEP_TABLE, Mode, StepDefinition, StepTable

__version__ = "0.1.0"
__all__ = [
    "CampaignBatch",
    "CampaignRunner",
    "CampaignStore",
    "GenerationResult",
    "Mode",
    "ProgressionEngine",
    "ProgressionSession",
    "ProgressionState",
    "ProgressionStore",
    "STEP_TABLE",
    "StepDefinition",
    "StepTable",
    "check_feasibility",
    "distribute",
    "get_storage",
]
