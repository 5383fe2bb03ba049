"""Patch engine core components.

Key Components:

- PatchEngine: Applies a PatchOperation to one file with backup, validation and rollback
- PatchOperation / PatchResult: Pydantic request and response models (camelCase on the wire)
- Strategies: LineStrategy, BlockStrategy, DiffStrategy, CompleteStrategy behind a StrategyRegistry
- normalize_content: Line ending / indentation / trailing whitespace normalization
- SearchPattern: Regex synthesized from literal search text, with token-similarity fallback
- perform_three_way_merge: Token-level positional merge over an LCS base
- ChangeValidator: Pre-commit checks per patch type
- TransactionManager: <path>.bak backup, commit and rollback
- PathLocks: Per-path serialization of concurrent patches
- PatchConfigLoader: YAML settings (explicit path, PATCH_MCP_CONFIG, ~/.patch-mcp/config.yml)
"""

from .diff_parser import DiffHunk, DiffLine, DiffParser
from .exceptions import (
    DiffParseError,
    FileAccessError,
    PatchConflictError,
    PatchError,
    PatchErrorCode,
    PatchInputError,
    PatchValidationError,
    TransactionError,
)
from .merge import MergeResult, find_common_ancestor, find_lcs, perform_three_way_merge
from .models import (
    NormalizedContent,
    PatchOperation,
    PatchResult,
    WhitespaceConfig,
    WhitespaceStats,
)
from .normalizer import normalize_content
from .patch_config import PatchConfigLoader, PatchSettings
from .patch_engine import PatchEngine
from .path_locks import PathLocks
from .patterns import SearchPattern, create_block_token_pattern, create_token_pattern
from .similarity import calculate_similarity
from .strategies import BlockStrategy, CompleteStrategy, DiffStrategy, LineStrategy
from .strategy_base import (
    PatchStrategy,
    ProtectedContentPolicy,
    StrategyContext,
    StrategyOutcome,
    StrategyRegistry,
    create_default_registry,
)
from .tokenizer import tokenize
from .transaction import AtomicContext, TransactionManager, TransactionState
from .validation import ChangeValidator, validate_changes

__all__ = [
    # Engine
    "PatchEngine",
    "PatchSettings",
    "PatchConfigLoader",
    # Models
    "PatchOperation",
    "PatchResult",
    "WhitespaceConfig",
    "WhitespaceStats",
    "NormalizedContent",
    # Strategies
    "PatchStrategy",
    "StrategyContext",
    "StrategyOutcome",
    "StrategyRegistry",
    "create_default_registry",
    "ProtectedContentPolicy",
    "LineStrategy",
    "BlockStrategy",
    "DiffStrategy",
    "CompleteStrategy",
    # Algorithms
    "normalize_content",
    "tokenize",
    "calculate_similarity",
    "SearchPattern",
    "create_token_pattern",
    "create_block_token_pattern",
    "DiffParser",
    "DiffHunk",
    "DiffLine",
    "MergeResult",
    "find_lcs",
    "find_common_ancestor",
    "perform_three_way_merge",
    "ChangeValidator",
    "validate_changes",
    # Transactions
    "AtomicContext",
    "TransactionManager",
    "TransactionState",
    "PathLocks",
    # Errors
    "PatchError",
    "PatchErrorCode",
    "PatchInputError",
    "PatchValidationError",
    "PatchConflictError",
    "DiffParseError",
    "FileAccessError",
    "TransactionError",
]
