"""MediKeep Infra TaskIQ -- background task broker factory."""

from medikeep.infra.taskiq.broker import broker, get_broker, get_result_backend
from medikeep.infra.taskiq.errors import TaskIQBrokerError, TaskIQError
from medikeep.infra.taskiq.lifespan import lifespan_contribution
from medikeep.infra.taskiq.settings import TaskIQSettings, get_taskiq_settings

__all__ = [
    "TaskIQBrokerError",
    "TaskIQError",
    "TaskIQSettings",
    "broker",
    "get_broker",
    "get_result_backend",
    "get_taskiq_settings",
    "lifespan_contribution",
]
