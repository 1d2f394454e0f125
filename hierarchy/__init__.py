"""Administrative hierarchy reconciliation (state -> LGA -> ward).

Typical use::

    from db import get_session
    from hierarchy import ReconciliationEngine, load_config, read_workbook

    config = load_config()
    source = read_workbook(config.source_path, config)
    with get_session() as session:
        result = ReconciliationEngine(session, config).run(source)
"""
from .assignment import Assignment, CanonicalRecord, MatchCandidate, StoreNode, solve  # noqa: F401
from .config import ReconcileConfig, load_config  # noqa: F401
from .engine import ReconciliationEngine, RunResult  # noqa: F401
from .errors import (  # noqa: F401
    ConstraintViolation,
    NameCollisionError,
    ReconcileError,
    SourceFormatError,
    StoreUnavailable,
    UnresolvedParentError,
)
from .merge import MergeExecutor  # noqa: F401
from .normalize import similarity, spaced_key, strict_key  # noqa: F401
from .orphans import OrphanSweeper  # noqa: F401
from .report import HierarchyReport, Validator  # noqa: F401
from .source import CanonicalSource, read_workbook  # noqa: F401
from .sync import CanonicalSynchronizer, SyncStats  # noqa: F401
