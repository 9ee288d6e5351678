from dataclasses import dataclass

from .audit import AuditAdapter, create_audit_log
from .chatbot import ChatbotAdapter
from .optimizer import OptimizerAdapter
from .prediction import PredictionAdapter
from .simulator import SimulatorAdapter
from .transport import Transport


@dataclass
class Adapters:
    prediction: PredictionAdapter
    optimizer: OptimizerAdapter
    simulator: SimulatorAdapter
    audit: AuditAdapter
    chatbot: ChatbotAdapter


def make_adapters(transport:Transport, **overrides)->Adapters:
    made = dict(prediction=PredictionAdapter(transport), optimizer=OptimizerAdapter(transport),
                simulator=SimulatorAdapter(transport), audit=AuditAdapter(transport), chatbot=ChatbotAdapter(transport))
    made.update({k: v for k, v in overrides.items() if v is not None})
    return Adapters(**made)


__all__ = ["Adapters", "AuditAdapter", "ChatbotAdapter", "OptimizerAdapter", "PredictionAdapter",
           "SimulatorAdapter", "Transport", "create_audit_log", "make_adapters"]
