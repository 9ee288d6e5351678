from datetime import datetime

from railops.api.models import KPI, utcnow


def format_delay(minutes:int|None)->str:
    if not minutes: return "On time"
    if minutes < 60: return f"+{minutes} min"
    h, m = divmod(minutes, 60)
    return f"+{h}h {m}m" if m else f"+{h}h"


def format_kpi_value(k:KPI)->str:
    if k.unit == "%": return f"{k.value:.1f}%"
    if k.unit: return f"{k.value:.1f} {k.unit}"
    return f"{k.value:.1f}"


def time_ago(ts:datetime|None, now:datetime|None=None)->str:
    if ts is None: return "never"
    secs = int(((now or utcnow()) - ts).total_seconds())
    if secs < 60: return "just now"
    if secs < 3600: return f"{secs // 60} min ago"
    if secs < 86400: return f"{secs // 3600} h ago"
    return f"{secs // 86400} d ago"


def confidence_label(confidence:float)->str:
    if confidence >= 0.85: return "high"
    if confidence >= 0.6: return "medium"
    return "low"
