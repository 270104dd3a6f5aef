import json
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd
import plotly.graph_objects as go
from plotly.utils import PlotlyJSONEncoder

from models.health_entry import HealthEntry
from .stats import last_7_days

SERIES_COLUMNS = [
    "calories_consumed", "calories_burned", "sleep_hours",
    "sleep_quality", "workout_minutes",
]

CHART_COLORS = {
    "calories_consumed": "#f97316",
    "calories_burned": "#3b82f6",
    "sleep_hours": "#8b5cf6",
    "workout_minutes": "#10b981",
    "net_calories": "#ef4444",
}


# ============================================================
# Chart-ready series
# ============================================================
def weekly_frame(entries: List[HealthEntry], now: Optional[datetime] = None) -> pd.DataFrame:
    """Last 7 days of entries, oldest first, one row per entry."""
    week = last_7_days(entries, now)
    columns = ["date", "entry_date"] + SERIES_COLUMNS + ["net_calories"]
    if not week:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([e.to_record() for e in week])
    df["day"] = pd.to_datetime(df["entry_date"].str[:10], format="%Y-%m-%d")
    df = df.sort_values("day", kind="stable").reset_index(drop=True)
    for col in SERIES_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0)
    df["date"] = df["day"].dt.strftime("%a")
    df["net_calories"] = df["calories_consumed"] - df["calories_burned"]
    return df[columns]


def sleep_quality_series(frame: pd.DataFrame) -> List[Dict]:
    return [
        {"name": row.date, "quality": row.sleep_quality * 100 / 5, "hours": row.sleep_hours}
        for row in frame.itertuples(index=False)
    ]


# ============================================================
# Plotly figures
# ============================================================
def _line(frame, column, name):
    return go.Scatter(
        x=frame["date"], y=frame[column], name=name, mode="lines+markers",
        line=dict(color=CHART_COLORS[column], width=2, shape="spline"),
        marker=dict(size=8),
    )


def _bar(frame, column, name):
    return go.Bar(x=frame["date"], y=frame[column], name=name,
                  marker_color=CHART_COLORS[column])


def _layout(title, subtitle):
    return go.Layout(
        title=dict(text=f"{title}<br><sup>{subtitle}</sup>"),
        height=300,
        margin=dict(l=40, r=20, t=60, b=40),
        template="plotly_white",
    )


def build_charts(entries: List[HealthEntry], now: Optional[datetime] = None) -> Dict[str, go.Figure]:
    """Figures for the dashboard; empty when the last 7 days hold no entries."""
    frame = weekly_frame(entries, now)
    if frame.empty:
        return {}

    return {
        "calories": go.Figure(
            data=[_line(frame, "calories_consumed", "Calories Consumed"),
                  _line(frame, "calories_burned", "Calories Burned")],
            layout=_layout("Calories Tracking", "Daily calorie consumption vs calories burned"),
        ),
        "workouts": go.Figure(
            data=[_bar(frame, "workout_minutes", "Workout Minutes")],
            layout=_layout("Workout Activity", "Daily workout minutes"),
        ),
        "sleep": go.Figure(
            data=[_line(frame, "sleep_hours", "Sleep Hours")],
            layout=_layout("Sleep Tracking", "Sleep hours and quality over time"),
        ),
        "net_calories": go.Figure(
            data=[_bar(frame, "net_calories", "Net Calories")],
            layout=_layout("Net Calories", "Calories consumed minus calories burned"),
        ),
    }


def charts_json(figures: Dict[str, go.Figure]) -> str:
    return json.dumps(figures, cls=PlotlyJSONEncoder)
