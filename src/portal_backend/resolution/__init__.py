from .strategies import (
    DEFAULT_STRATEGIES,
    first_match,
    is_valid_slug,
    join_sub_path,
    module_or_alias_strategy,
    multi_instance_strategy,
)
from .resolver import PathResolver, split_path
from .facade import ResolutionFacade, ResolutionState
from .tracker import ResolutionTracker
