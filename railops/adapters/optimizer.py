from railops.api.models import Recommendation, SystemState, utcnow
from .base import BaseAdapter


def _recs(d)->list[Recommendation]:
    return [Recommendation.model_validate(r) for r in d]


class OptimizerAdapter(BaseAdapter):
    """Recommendations from the optimizer service."""

    async def list_recommendations(self)->list[Recommendation]:
        return await self._soft("list recommendations", self.transport.get("/recommendations"), _recs, list)

    async def get_recommendations(self, state:SystemState)->list[Recommendation]:
        body = {"systemState": state, "timestamp": utcnow().isoformat()}
        return await self._soft("get recommendations", self.transport.post("/recommendations", body), _recs, list)
