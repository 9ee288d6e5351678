import logging
from typing import Any, Callable, TypeVar

from railops.errors import TransportError
from .transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseAdapter:
    """Stateless wrapper around one backend capability."""

    def __init__(self, transport:Transport):
        self.transport = transport

    @staticmethod
    def data(envelope:Any)->Any:
        if isinstance(envelope, dict) and "data" in envelope:
            return envelope["data"]
        return envelope

    async def _soft(self, label:str, call, parse:Callable[[Any], T], default:Callable[[], T])->T:
        """Await ``call`` and parse its data; on TransportError log and return ``default()``."""
        try:
            envelope = await call
        except TransportError as e:
            logger.warning("Failed to %s: %s", label, e)
            return default()
        return parse(self.data(envelope))
