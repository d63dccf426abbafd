# Configuration and Response Schemas
from alert_escalation.schemas.engine_config import EngineConfig, EngineConfigUpdate
from alert_escalation.schemas.stats import AlertStats

__all__ = [
    "AlertStats",
    "EngineConfig",
    "EngineConfigUpdate",
]
