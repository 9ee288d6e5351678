from railops.api.models import ProjectedKpis, SimulationResult, WhatIfPayload, utcnow
from .base import BaseAdapter

FAILED_SAFETY = "unknown"


def failed_result()->SimulationResult:
    return SimulationResult(
        scenario_id=f"sim-{int(utcnow().timestamp()*1000)}",
        projected_kpis=ProjectedKpis(delay=0, throughput=0, safety=FAILED_SAFETY),
        chart_data=[],
        recommendations=["Simulation failed - check system status"],
    )


def is_failed(result:SimulationResult)->bool:
    return result.projected_kpis.safety == FAILED_SAFETY


class SimulatorAdapter(BaseAdapter):
    """What-if scenario runs."""

    async def run_what_if_scenario(self, payload:WhatIfPayload)->SimulationResult:
        body = {**payload.wire(), "timestamp": utcnow().isoformat()}
        return await self._soft("run what-if scenario", self.transport.post("/simulate", body),
                                SimulationResult.model_validate, failed_result)
