from __future__ import annotations
import streamlit as st
from datetime import datetime

from railops.config import settings

BOARD_BG    = "#101820"
BOARD_AMBER = "#FFB000"
INK         = "#1F2A37"
MUTED       = "#6B7280"

STATUS_STYLE = {"on-time": "success", "at-platform": "neutral", "delayed": "warn", "stopped": "warn"}

_CSS = f"""
<style>
.stApp {{ background:#F5F6F8; }}
.board {{ display:flex; justify-content:space-between; align-items:center; padding:14px 20px;
  border-radius:10px; background:{BOARD_BG}; color:{BOARD_AMBER};
  font-family:"DejaVu Sans Mono", monospace; letter-spacing:1px; margin-bottom:10px; }}
.board .who {{ font-size:20px; font-weight:700; }}
.board .clock {{ font-size:26px; }}
.board .note {{ color:#C9D1D9; font-size:13px; letter-spacing:0; }}
.tag {{ display:inline-block; padding:3px 9px; margin:0 6px 6px 0; border-radius:4px;
  font-size:12px; font-weight:600; border-left:4px solid {MUTED}; background:#fff; color:{INK}; }}
.tag.success {{ border-left-color:#1A7F37; }}
.tag.warn {{ border-left-color:#CF222E; background:#FFF5F5; }}
.chat-bubble {{ padding:10px 12px; border-radius:8px; border:1px solid #E5E7EB; line-height:1.5; }}
.chat-user {{ background:#EEF2F7; }}
.chat-assist {{ background:#fff; }}
footer {{ visibility:hidden; }}
</style>
"""

def _css():
    st.markdown(_CSS, unsafe_allow_html=True)

def salutation(hour:int)->str:
    if 5 <= hour < 12: return "Good morning"
    if 12 <= hour < 18: return "Good afternoon"
    return "Good evening"

def header(title:str, subtitle:str|None=None):
    _css()
    st.title(title)
    if subtitle: st.caption(subtitle)

def greeting(name:str|None=None):
    """Departure-board banner with the controller's name and the current time."""
    _css()
    name = name or st.session_state.get("display_name") or settings.ACTOR
    now = datetime.now()
    st.markdown(
        f"<div class='board'><div><div class='who'>{salutation(now.hour)}, {name}</div>"
        f"<div class='note'>Network status, recommendations and what-if analysis</div></div>"
        f"<div class='clock'>{now:%H:%M}</div></div>",
        unsafe_allow_html=True,
    )

def chips_row(items):
    """items: (label, style) pairs, style one of success / warn / neutral."""
    _css()
    tags = [f"<span class='tag {style if style in ('success', 'warn') else ''}'>{label}</span>" for label, style in items]
    st.markdown("".join(tags), unsafe_allow_html=True)

def status_banner(state):
    if state.error: st.error(state.error)
