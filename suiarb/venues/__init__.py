from .base import ImbalanceAware, Pool, classify_failure, pool_uuid
from .cetus import CetusConfig, CetusPool
from .ramm import RAMMConfig, RAMMPool
from .sui_client import RpcMethodError, SuiRpcClient

__all__ = [
    "CetusConfig",
    "CetusPool",
    "ImbalanceAware",
    "Pool",
    "RAMMConfig",
    "RAMMPool",
    "RpcMethodError",
    "SuiRpcClient",
    "classify_failure",
    "pool_uuid",
]
