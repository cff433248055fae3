import io
import logging
from typing import Any, Dict, List, Optional

import matplotlib
matplotlib.use('Agg') # Non-interactive backend for server-side rendering
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure

logger = logging.getLogger(__name__)

sns.set_theme(style="whitegrid")

DESIGNATION_COLUMNS = {
    "Professors": "Professor",
    "AssociateProfessors": "Associate Professor",
    "AssistantProfessors": "Assistant Professor",
}


def _faculty_stats_frame(stats: List[Dict[str, Any]]) -> pd.DataFrame:
    """Wide per-department stats -> long (Department, Designation, Count) rows."""
    df = pd.DataFrame(stats)
    df["Department"] = df["Department"].fillna("Unassigned")
    for column in DESIGNATION_COLUMNS:
        df[column] = df[column].astype(float).fillna(0)
    df["Other"] = (df["TotalFaculty"].astype(float).fillna(0) - df[list(DESIGNATION_COLUMNS)].sum(axis=1)).clip(lower=0)
    df_long = pd.melt(
        df,
        id_vars=["Department"],
        value_vars=list(DESIGNATION_COLUMNS) + ["Other"],
        var_name="Designation",
        value_name="Count",
    )
    df_long["Designation"] = df_long["Designation"].map(lambda c: DESIGNATION_COLUMNS.get(c, c))
    return df_long


def render_faculty_distribution_chart(stats: List[Dict[str, Any]]) -> Optional[bytes]:
    """PNG bar chart of faculty per department split by designation.

    Returns None when there is nothing to plot. Uses the Figure API rather
    than pyplot so it is safe to call from worker threads.
    """
    if not stats:
        return None
    df_long = _faculty_stats_frame(stats)
    if df_long["Count"].sum() == 0:
        return None

    fig = Figure(figsize=(8, 4), dpi=120)
    ax = fig.subplots()
    sns.barplot(data=df_long, x="Department", y="Count", hue="Designation", ax=ax, errorbar=None)
    ax.set_title("Faculty by Designation")
    ax.set_xlabel("")
    ax.set_ylabel("Faculty")
    ax.tick_params(axis="x", labelrotation=20, labelsize=7)
    ax.legend(fontsize=7, title=None)
    fig.tight_layout()

    buffer = io.BytesIO()
    fig.savefig(buffer, format="png")
    logger.debug(f"Rendered faculty distribution chart for {len(stats)} departments")
    return buffer.getvalue()
