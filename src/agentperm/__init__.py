from .config import (
    EnforcementMode,
    EvaluationMode,
    LogLevel,
    PermissionConfig,
    load_config_from_env,
)
from .exceptions import (
    AgentPermError,
    DuplicateCodeError,
    InvalidCodeError,
    InvalidPermissionError,
    InvalidProviderError,
    InvalidVerifierError,
    MissingCodeError,
    PermissionDeniedError,
    ProviderNotImplementedError,
)
from .logging import (
    PermissionLogFormatter,
    PermissionLoggerAdapter,
    get_logger,
    safe_preview,
    setup_logging,
)
from .registry import CodeRegistry, get_default_registry, reset_registry
from .permission import Permission, PermissionType, VerifierKind, create
from .combinators import all_of, any_of, evaluate, evaluate_sync, has

__all__ = [
    'Permission',
    'PermissionType',
    'VerifierKind',
    'create',
    'has',
    'all_of',
    'any_of',
    'evaluate',
    'evaluate_sync',
    'CodeRegistry',
    'get_default_registry',
    'reset_registry',
    'AgentPermError',
    'MissingCodeError',
    'InvalidCodeError',
    'DuplicateCodeError',
    'InvalidVerifierError',
    'InvalidProviderError',
    'InvalidPermissionError',
    'ProviderNotImplementedError',
    'PermissionDeniedError',
    'PermissionConfig',
    'EvaluationMode',
    'EnforcementMode',
    'LogLevel',
    'load_config_from_env',
    'PermissionLogFormatter',
    'PermissionLoggerAdapter',
    'setup_logging',
    'get_logger',
    'safe_preview',
]
