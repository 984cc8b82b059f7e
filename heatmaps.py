"""
🔥 HEATMAP RENDERING
====================
Coloured tables for teacher workload and setup completeness.
Uses pandas Styler for cell coloring.
"""

import pandas as pd
from typing import List

from assignments import TeacherWorkload
from models import CompletenessReport


TIER_STYLES = {
    "green": "background-color: #22c55e; color: white;",
    "yellow": "background-color: #eab308; color: black;",
    "red": "background-color: #ef4444; color: white;",
}


def _score_style(val: float) -> str:
    """Section percentage 0-100 -> red (empty) or green (filled)."""
    if pd.isna(val):
        return ""
    return TIER_STYLES["green"] if val >= 100 else TIER_STYLES["red"]


def workload_frame(summary: List[TeacherWorkload]) -> pd.DataFrame:
    """Rows=teachers. Current, capacity, percentage and tier per teacher."""
    rows = [
        {
            "Teacher": w.teacher.full_name,
            "Periods": w.current,
            "Capacity": w.capacity,
            "Load %": round(w.percentage, 1),
            "Tier": w.tier,
        }
        for w in summary
    ]
    return pd.DataFrame(rows, columns=["Teacher", "Periods", "Capacity", "Load %", "Tier"])


def render_workload_table(summary: List[TeacherWorkload]):
    """Colour the Load % column by tier (>=90 red, >=70 yellow, else green)."""
    df = workload_frame(summary)
    tiers = df["Tier"].tolist()

    def _style_column(col: pd.Series) -> List[str]:
        return [TIER_STYLES.get(t, "") for t in tiers]

    return (
        df.style.apply(_style_column, subset=["Load %"])
        .format({"Load %": "{:.1f}"})
        .set_caption("Teacher Workload (periods per week vs capacity)")
    )


def render_completeness_table(report: CompletenessReport):
    """Rows=sections. Filled sections green, empty ones red."""
    df = pd.DataFrame(
        [[s.name, s.weight, s.score, s.percentage] for s in report.sections],
        columns=["Section", "Weight", "Score", "Percent"],
    )
    return (
        df.style.map(_score_style, subset=["Percent"])
        .format({"Percent": "{:.0f}%"})
        .set_caption(f"Setup Completeness ({report.percentage:.1f}%)")
    )
