from .principal import Principal
from .aggregator import PermissionAggregator, gate, has_flat_permission, permission_map
from .summary import PermissionSummaryService
