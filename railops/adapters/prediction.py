from railops.api.models import Prediction, Train, utcnow
from .base import BaseAdapter


class PredictionAdapter(BaseAdapter):
    """Delay predictions per train."""

    async def get_predictions_for_trains(self, trains:list[Train])->list[Prediction]:
        body = {"trainIds": [t.id for t in trains], "timestamp": utcnow().isoformat()}
        return await self._soft("get predictions", self.transport.post("/predictions", body),
                                lambda d: [Prediction.model_validate(p) for p in d], list)

    async def get_prediction_for_train(self, train_id:str)->Prediction|None:
        return await self._soft(f"get prediction for train {train_id}", self.transport.get(f"/predictions/{train_id}"),
                                Prediction.model_validate, lambda: None)
