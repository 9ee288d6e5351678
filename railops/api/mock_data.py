# railops/api/mock_data.py
# Synthetic data for the mock API: jittered KPIs, predictions, what-if results, canned chat.
from __future__ import annotations
import math, random, re, uuid
from datetime import datetime, timedelta

import pandas as pd

from .models import (
    KPI, Alternative, ChatMessage, ChatReference, Comparison, KpiImpact, KpiPoint, KpiSnapshot,
    KpiSummary, Prediction, ProjectedKpis, Recommendation, SimPoint, SimulationResult, SystemState,
    Train, WhatIfPayload, utcnow,
)

MODEL_VERSION = "v2.1.3"
BASE_THROUGHPUT = 142
BASE_UTILIZATION = 78.3


def short_id(prefix:str)->str:
    return f"{prefix}-{int(utcnow().timestamp()*1000)}-{uuid.uuid4().hex[:9]}"


# ---------- KPIs ----------
def jitter_kpis(kpis:list[KPI])->list[KPI]:
    out = []
    for k in kpis:
        new = k.value * (1 + (random.random() - 0.5) * 0.1)
        change = new - k.value
        pct = (change / k.value * 100) if k.value else 0.0
        trend = "stable" if abs(pct) <= 1 else "up" if pct > 0 else "down"
        status = "good"
        if k.target:
            off = abs(new - k.target) / k.target
            status = "critical" if off > 0.2 else "warning" if off > 0.1 else "good"
        out.append(k.model_copy(update=dict(value=round(new, 2), change=round(change, 2),
                                            change_percent=round(pct, 2), trend=trend, status=status)))
    return out


def system_health(kpis:list[KPI])->str:
    if not kpis: return "good"
    counts = pd.Series([k.status or "good" for k in kpis]).value_counts()
    total = len(kpis)
    critical = counts.get("critical", 0) / total
    warning = counts.get("warning", 0) / total
    good = counts.get("good", 0) / total
    if critical > 0.3: return "critical"
    if critical > 0 or warning > 0.5: return "warning"
    if good > 0.8: return "excellent"
    return "good"


def kpi_summary(trains_df:pd.DataFrame, recs:list[Recommendation], kpis:list[KPI])->KpiSummary:
    delayed = int((trains_df["delay_minutes"].fillna(0) > 0).sum()) if not trains_df.empty else 0
    return KpiSummary(total_trains=len(trains_df), delayed_trains=delayed,
                      active_recommendations=sum(1 for r in recs if r.status == "pending"),
                      system_health=system_health(kpis))


_HISTORY_SHAPE = {  # metric -> (base, random span, wave amplitude, wave frequency)
    "throughput": (140, 20, 10, 0.3),
    "delay": (8, 6, 3, 0.2),
    "utilization": (75, 15, 8, 0.4),
    "acceptanceRate": (85, 10, 5, 0.1),
}


def kpi_history(metric:str, time_range:str="1h")->list[KpiPoint]:
    points, step = {"1h": (12, 5), "6h": (24, 15)}.get(time_range, (48, 30))
    base, span, amp, freq = _HISTORY_SHAPE.get(metric, (0, 100, 0, 0))
    now = datetime.now()
    out = []
    for i in range(points - 1, -1, -1):
        t = now - timedelta(minutes=i * step)
        v = base + random.random() * span + math.sin(i * freq) * amp
        out.append(KpiPoint(time=t.strftime("%H:%M"), value=round(max(0.0, v), 2), label=metric, category="historical"))
    return out


# ---------- Predictions ----------
def _predicted_arrival(train:Train, delay:int)->str:
    if not train.scheduled_arrival: return ""
    try:
        h, m = (int(x) for x in train.scheduled_arrival.split(":"))
    except ValueError:
        return train.scheduled_arrival
    t = datetime.now().replace(hour=h, minute=m, second=0, microsecond=0) + timedelta(minutes=delay)
    return t.strftime("%H:%M")


def predict(train:Train)->Prediction:
    base = train.delay_minutes or 0
    delay = max(0, round(base + random.random() * 10 - 5))
    conf = 0.7 + random.random() * 0.25
    if delay > 20: conf *= 0.9
    if delay > 40: conf *= 0.8
    factors = []
    if base > 0: factors.append("current_delay")
    if random.random() > 0.7: factors.append("weather_conditions")
    if random.random() > 0.8: factors.append("track_congestion")
    if random.random() > 0.9: factors.append("equipment_issue")
    return Prediction(train_id=train.id, delay_minutes=delay, confidence=round(conf, 2),
                      predicted_arrival=_predicted_arrival(train, delay),
                      factors=factors or ["normal_variation"], model_version=MODEL_VERSION)


# ---------- Recommendations ----------
def _impact(delay:tuple, thr:tuple, safety:str, cost:tuple, pax:tuple)->KpiImpact:
    r = random.randint
    return KpiImpact(delay_reduction=r(*delay), throughput=r(*thr), safety=safety, cost=r(*cost), passenger_impact=r(*pax))


def generate_recommendation(state:SystemState)->Recommendation:
    stamp = int(utcnow().timestamp() * 1000)
    return Recommendation(
        id=f"rec-{stamp}",
        train_id=state.trains[0].id if state.trains else None,
        action="Optimize network based on current conditions",
        rationale=(f"Generated recommendation based on system state analysis. Current network has "
                   f"{len(state.trains)} active trains with optimization opportunities identified."),
        confidence=round(0.82 + random.random() * 0.15, 2),
        kpis=_impact((5, 19), (85, 104), "high" if random.random() > 0.3 else "medium", (500, 2499), (10, 59)),
        alternatives=[
            Alternative(id=f"alt-{stamp}-1", action="Conservative optimization approach",
                        kpis=_impact((2, 9), (80, 94), "high", (200, 999), (5, 24)),
                        description="Lower risk approach with gradual improvements", estimated_duration=30, risk_level="low"),
            Alternative(id=f"alt-{stamp}-2", action="Aggressive optimization approach",
                        kpis=_impact((10, 29), (90, 114), "medium", (1000, 3999), (20, 99)),
                        description="Higher impact approach with increased complexity", estimated_duration=60, risk_level="medium"),
        ],
        created_at=utcnow(), priority="high", status="pending",
    )


# ---------- What-if simulation ----------
def simulate(train:Train, p:WhatIfPayload)->SimulationResult:
    baseline = train.delay_minutes or 0
    total = baseline + (p.delay_minutes or 0)
    rerouted = bool(p.reroute_to)

    delay = max(0.0, total * 0.7 + 5) if rerouted else float(total)
    if total > 30: delay += random.random() * 10
    cascading = "high" if total > 30 else "medium" if total > 15 else "low"

    loss = total * 0.3 * (0.6 if rerouted else 1.0)
    throughput = max(100.0, BASE_THROUGHPUT - loss)
    loss_pct = round(loss / BASE_THROUGHPUT * 100)

    score = 90 - (15 if total > 40 else 8 if total > 20 else 0) + (5 if rerouted else 0)
    safety = "high" if score >= 85 else "medium" if score >= 70 else "low"

    cost = 500 + total * 50 + (800 if rerouted else 0)
    utilization = max(0.0, min(100.0, BASE_UTILIZATION - total * 0.5 + (5 if rerouted else 0)))

    chart = []
    start = datetime.now().replace(hour=9, minute=0, second=0, microsecond=0)
    for i in range(0, 61, 15):
        cur = max(0, total * 0.7) if rerouted and i >= 30 else total
        cur += (random.random() - 0.5) * 2
        chart.append(SimPoint(time=(start + timedelta(minutes=i)).strftime("%H:%M"), delay=round(max(0, cur), 1),
                              throughput=round(max(100, BASE_THROUGHPUT - cur * 0.3), 1),
                              utilization=round(max(0, min(100, BASE_UTILIZATION - cur * 0.2)), 1)))

    advice = []
    if delay > 20: advice.append("Consider implementing priority scheduling to reduce cascading delays")
    if loss_pct > 15: advice.append("Network throughput significantly impacted - evaluate alternative routing options")
    if safety == "low": advice.append("Safety concerns identified - recommend additional monitoring and contingency planning")
    if rerouted: advice.append(f"Rerouting to {p.reroute_to} shows positive impact - consider implementation")
    else: advice.append("Evaluate rerouting options to mitigate delay impact")
    if cascading == "high": advice.append("High risk of cascading delays - prepare network-wide contingency measures")

    projected = KpiSnapshot(delay=round(delay, 1), throughput=round(throughput, 1), safety=safety)
    return SimulationResult(
        scenario_id=short_id("sim"),
        projected_kpis=ProjectedKpis(delay=projected.delay, throughput=projected.throughput, safety=safety,
                                     cost=cost, utilization=round(utilization, 1)),
        chart_data=chart,
        comparison_data=Comparison(baseline=KpiSnapshot(delay=baseline, throughput=BASE_THROUGHPUT, safety="medium"),
                                   projected=projected),
        recommendations=advice,
    )


# ---------- Chat ----------
_TRAIN_RE = re.compile(r"(IC-\d+|HST-\d+|REG-\d+|EXP-\d+)", re.I)

GENERAL_REPLIES = [
    "I understand you're asking about railway operations. Could you be more specific about what you'd like to know? I can help with train status, KPI analysis, simulations, or explain recommendations.",
    "I'm here to help with railway network analysis. You can ask me about current train delays, performance metrics, what-if scenarios, or recommendation explanations.",
    "That's an interesting question about our railway system. I can provide insights on train operations, network performance, delay predictions, or recommendation analysis. What specific area interests you?",
]


def classify(message:str)->str:
    low = message.lower()
    if "why" in low and ("recommend" in low or "suggestion" in low): return "explain_recommendation"
    if "simulate" in low or "what if" in low: return "run_simulation"
    if "kpi" in low or "performance" in low or "metric" in low: return "analyze_kpis"
    if "train" in low and ("status" in low or "delay" in low): return "get_train_status"
    if "help" in low or "?" in low: return "general_help"
    return "general"


def _reply(text:str, intent:str, confidence:float, **kw)->ChatMessage:
    return ChatMessage(id=short_id("msg") + "-ai", role="assistant", text=text, intent=intent, confidence=confidence, **kw)


def chat_reply(message:str, trains:list[Train], kpis:list[KPI], recs:list[Recommendation])->list[ChatMessage]:
    """Canned assistant answer for a user message, filled in from current mock state."""
    intent = classify(message)

    if intent == "explain_recommendation":
        rec = next((r for r in recs if r.status == "pending"), recs[0] if recs else None)
        if rec is None:
            return [_reply("There are no active recommendations to explain right now.", intent, 0.8)]
        text = (f"The current recommendation is **{rec.action}**.\n\n{rec.rationale}\n\n"
                f"- Expected delay reduction: {rec.kpis.delay_reduction:.0f} min\n"
                f"- Throughput after change: {rec.kpis.throughput:.0f}%\n"
                f"- Safety: {rec.kpis.safety}\n"
                f"- Confidence: {rec.confidence:.0%}\n\n"
                "Would you like me to explain any specific aspect in more detail?")
        return [_reply(text, intent, 0.92, references=[ChatReference(source="recommendation", id=rec.id,
                                                                     title="Dynamic Rerouting Recommendation", url="/recommendations")])]

    if intent == "run_simulation":
        m = re.search(r"(\d+)\s*min", message)
        t = _TRAIN_RE.search(message)
        delay = int(m.group(1)) if m else 15
        number = t.group(1).upper() if t else "HST-1205"
        text = (f"I'll run a simulation for {number} with a {delay}-minute delay scenario.\n\n"
                f"**Simulation Results:**\n"
                f"- **Projected Total Delay**: {delay + 3} minutes (including cascading effects)\n"
                f"- **Throughput Impact**: -8% (from 142 to 131 trains/hour)\n"
                f"- **Network Utilization**: 82% (up from 78% due to congestion)\n"
                f"- **Safety Status**: Medium (increased monitoring recommended)\n\n"
                f"**Recommendations:**\n1. Implement priority scheduling for {number}\n"
                "2. Prepare contingency routing for affected trains\n3. Notify passengers of potential delays\n\n"
                "Use the What-If page to run the full scenario.")
        return [_reply(text, intent, 0.89, actionable=True,
                       references=[ChatReference(source="simulation", title=f"{number} Delay Simulation", url="/what-if")])]

    if intent == "analyze_kpis":
        lines = []
        for k in kpis:
            target = f", target {k.target:g}" if k.target is not None else ""
            lines.append(f"- **{k.name}**: {k.value:g} {k.unit or ''}{target} ({k.status or 'good'})")
        text = "Here's the current KPI analysis:\n\n" + "\n".join(lines) + \
               "\n\nWould you like me to dive deeper into any specific metric or show historical trends?"
        return [_reply(text, intent, 0.94, references=[ChatReference(source="dashboard", title="KPI Dashboard", url="/dashboard")])]

    if intent == "get_train_status":
        lines = []
        for t in trains:
            state = f"Delayed by {t.delay_minutes} minutes" if (t.delay_minutes or 0) > 0 else (t.status or "unknown")
            lines.append(f"**{t.number}** ({t.origin} → {t.destination}): {state}, at {t.current_location}, "
                         f"passengers {t.passengers}/{t.capacity}")
        delayed = sum(1 for t in trains if (t.delay_minutes or 0) > 0)
        text = (f"Current train status overview ({len(trains)} active):\n\n" + "\n".join(f"- {l}" for l in lines) +
                f"\n\n{delayed} of {len(trains)} trains delayed.")
        return [_reply(text, intent, 0.96, references=[ChatReference(source="trains", title="Live Train Status", url="/dashboard")])]

    if intent == "general_help":
        text = ("I can help with the Railway Decision-Support Dashboard:\n\n"
                "- **Analysis**: \"Why is train IC-2847 recommended for rerouting?\", \"Show me current KPI trends\"\n"
                "- **Simulations**: \"What if HST-1205 is delayed by 15 minutes?\"\n"
                "- **Status**: \"Which trains are currently delayed?\"\n\n"
                "I can provide insights and suggestions, but I cannot control train operations. "
                "All actions must be approved through the dashboard.")
        return [_reply(text, intent, 1.0, actionable=False)]

    return [_reply(random.choice(GENERAL_REPLIES), "general", 0.7)]
