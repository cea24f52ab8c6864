"""
Wealth Planner Dashboard
========================

Four panels over one client:
  1. Projection:   monthly wealth curve to the horizon, plus a year-end table
  2. Goals:        projected value at each goal date, gap and feasibility
  3. Suggestions:  prioritized adjustments, with "simulate impact" for each
  4. History:      save the current run, browse, rename/tag, compare, delete

Run: streamlit run app/streamlit_app.py   (or the ``wealth-planner`` console script)
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

# ---------------------------------------------------------------------------
# Make project root importable
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.cache import TTLCache
from core.config import PlannerConfig
from core.errors import PlannerError
from core.schema import WealthProjection
from core.utils import configure_logging

from engine.builder import ProjectionBuilder

from advice.suggestions import SuggestionGenerator

from history.service import SimulationHistory

from store.loader import load_clients_json
from store.memory import InMemoryStore
from store.validators import validate_client_record

# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_CLIENTS_FILE = DATA_DIR / "sample_clients.json"

PRIORITY_BADGES = {"high": "🔴", "medium": "🟠", "low": "🟢"}


# ---------------------------------------------------------------------------
# Services (one set per clients file, shared across reruns)
# ---------------------------------------------------------------------------
@st.cache_resource(show_spinner="Loading clients...")
def _services(clients_path: str, annual_rate: float, horizon_end_year: int):
    cfg = PlannerConfig(default_annual_rate=annual_rate, horizon_end_year=horizon_end_year)
    store = InMemoryStore(load_clients_json(clients_path))
    cache = TTLCache(cfg.cache_ttl_seconds)
    builder = ProjectionBuilder(store, cfg, cache=cache)
    return {
        "config": cfg,
        "store": store,
        "cache": cache,
        "builder": builder,
        "suggestions": SuggestionGenerator(builder, cfg, cache=cache),
        "history": SimulationHistory(store, cfg),
    }


# ---------------------------------------------------------------------------
# Formatting / chart helpers
# ---------------------------------------------------------------------------
def _fmt_money(val):
    return f"{val:,.2f}"


def _fmt_pct(val):
    return f"{val:.2%}"


def _plot_projection(projection: WealthProjection, *, compare: Optional[WealthProjection] = None,
                     goals=None, height=380):
    df = projection.to_dataframe()
    if len(df) == 0:
        st.info("No data to plot.")
        return
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=df["date"], y=df["projected_value"], mode="lines", name="Current plan"))
    if compare is not None:
        cdf = compare.to_dataframe()
        fig.add_trace(go.Scatter(
            x=cdf["date"], y=cdf["projected_value"], mode="lines",
            name="With suggestion", line={"dash": "dash"},
        ))
    for g in goals or []:
        fig.add_trace(go.Scatter(
            x=[pd.Timestamp(g.target_date)], y=[g.amount], mode="markers",
            marker={"symbol": "star", "size": 12, "color": "green" if g.feasible else "red"},
            name=f"Goal: {g.type}",
        ))
    fig.update_layout(
        height=height,
        margin={"l": 10, "r": 10, "t": 30, "b": 10},
        yaxis={"title": "Projected value", "tickformat": ",.0f"},
        xaxis={"title": "Date"},
        legend={"orientation": "h"},
    )
    st.plotly_chart(fig, use_container_width=True)


def _plot_history_bars(comparison_df: pd.DataFrame, height=300):
    colors = [
        "green" if best else "red" if worst else "steelblue"
        for best, worst in zip(comparison_df["best"], comparison_df["worst"])
    ]
    fig = go.Figure(go.Bar(x=comparison_df["name"], y=comparison_df["final_value"], marker_color=colors))
    fig.update_layout(height=height, yaxis={"title": "Final value", "tickformat": ",.0f"})
    st.plotly_chart(fig, use_container_width=True)


# ---------------------------------------------------------------------------
# Panels
# ---------------------------------------------------------------------------
def _projection_panel(projection: WealthProjection, analysis):
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Current value", _fmt_money(projection.initial_value))
    c2.metric(f"Value at {projection.end_year}", _fmt_money(projection.final_value))
    c3.metric("Total return", _fmt_money(projection.total_return))
    c4.metric("Goal alignment", f"{analysis.overall_alignment}%")

    _plot_projection(projection, goals=analysis.goals)

    with st.expander("Year-end values"):
        annual = ProjectionBuilder.annual_dataframe(projection)
        st.dataframe(
            annual.style.format({"projected_value": _fmt_money}),
            use_container_width=True, hide_index=True,
        )


def _goals_panel(analysis):
    if not analysis.goals:
        st.info("This client has no goals.")
        return
    df = pd.DataFrame([g.to_dict() for g in analysis.goals])
    st.dataframe(
        df[["type", "amount", "target_date", "projected_value", "gap", "feasible"]].style.format(
            {"amount": _fmt_money, "projected_value": _fmt_money, "gap": _fmt_money}
        ),
        use_container_width=True, hide_index=True,
    )
    summary = analysis.summary()["goals_summary"]
    st.caption(
        f"{summary['feasible']:.0f} of {summary['total']:.0f} goals on track; "
        f"total shortfall {_fmt_money(summary['total_gap'])}"
    )


def _suggestions_panel(svc, client_id: str, analysis):
    if not analysis.suggestions:
        st.success("No adjustments suggested: the plan covers every goal.")
        return

    for i, s in enumerate(analysis.suggestions):
        badge = PRIORITY_BADGES.get(s.priority.value, "")
        with st.container(border=True):
            st.markdown(f"{badge} **{s.title}**  \n_{s.category.value}_")
            st.write(s.description)
            if st.button("Simulate impact", key=f"impact_{client_id}_{i}"):
                st.session_state["impact"] = (client_id, i, svc["suggestions"].compare_impact(client_id, s))

    impact = st.session_state.get("impact")
    if impact is not None and impact[0] == client_id:
        _, _, cmp = impact
        st.divider()
        st.markdown(f"#### Impact: {cmp.suggestion.title}")
        st.write(cmp.description)
        for note in cmp.notes:
            st.caption(note)
        _plot_projection(cmp.baseline, compare=cmp.impact)


def _history_panel(svc, client_id: str, projection: WealthProjection):
    history: SimulationHistory = svc["history"]

    with st.form("save_simulation", clear_on_submit=True):
        st.markdown("#### Save current projection")
        name = st.text_input("Name", placeholder="Simulation YYYY-MM-DD")
        description = st.text_input("Description")
        tags = st.text_input("Tags (comma separated)")
        if st.form_submit_button("Save"):
            sim_id = history.save(
                client_id,
                projection,
                name=name or None,
                description=description or None,
                tags=[t.strip() for t in tags.split(",") if t.strip()],
            )
            st.success(f"Saved simulation {sim_id}")

    stats = history.stats_for_client(client_id)
    c1, c2, c3 = st.columns(3)
    c1.metric("Saved runs", stats.total_simulations)
    c2.metric("Average final value", _fmt_money(stats.average_final_value))
    c3.metric("Runs this month", stats.recent_activity.simulations_this_month)
    if stats.best_simulation is not None:
        st.caption(f"Best run: {stats.best_simulation.name} ({_fmt_money(stats.best_simulation.final_value)})")

    c1, c2, c3 = st.columns(3)
    sort_by = c1.selectbox("Sort by", ["created_at", "final_value", "total_return"])
    sort_order = c2.selectbox("Order", ["desc", "asc"])
    page = c3.number_input("Page", min_value=1, value=1, step=1)
    result = history.list(client_id, {"page": int(page), "sort_by": sort_by, "sort_order": sort_order})
    st.caption(f"Page {result.page} of {max(result.total_pages, 1)} ({result.total} saved)")

    if not result.simulations:
        st.info("No saved simulations yet.")
        return

    table = SimulationHistory.to_dataframe(result.simulations)
    st.dataframe(
        table.style.format({"final_value": _fmt_money, "total_return": _fmt_money, "annual_rate": _fmt_pct}),
        use_container_width=True, hide_index=True,
    )

    labels = {r.id: f"{r.name} ({r.id[:8]})" for r in result.simulations}
    selected = st.multiselect("Compare runs", list(labels), format_func=labels.get)
    if selected:
        try:
            comparison = history.compare(selected)
        except PlannerError as exc:
            st.warning(str(exc))
        else:
            summary = comparison.comparison
            c1, c2 = st.columns(2)
            c1.metric("Average final value", _fmt_money(summary.average_final_value))
            c2.metric("Average return", _fmt_money(summary.average_return))
            _plot_history_bars(comparison.to_dataframe())

    with st.expander("Edit or delete a run"):
        target = st.selectbox("Run", list(labels), format_func=labels.get, key="edit_target")
        new_name = st.text_input("New name", key="edit_name")
        new_tags = st.text_input("New tags (comma separated)", key="edit_tags")
        b1, b2 = st.columns(2)
        if b1.button("Update"):
            update = {"name": new_name or None}
            if new_tags:
                update["tags"] = [t.strip() for t in new_tags.split(",") if t.strip()]
            history.update_metadata(target, update)
            st.rerun()
        if b2.button("Delete"):
            history.delete(target)
            st.rerun()


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------
def main():
    configure_logging()
    st.set_page_config(page_title="Wealth Planner", layout="wide")
    st.title("Wealth Planner")

    with st.sidebar:
        st.header("Settings")
        clients_path = st.text_input("Clients file", value=str(DEFAULT_CLIENTS_FILE))
        annual_rate = st.slider("Annual return", 0.0, 0.15, 0.04, 0.005, format="%.3f")
        horizon = st.number_input("Horizon end year", min_value=2025, max_value=2100, value=2060, step=1)

    if not Path(clients_path).exists():
        st.error(f"Clients file not found: {clients_path}")
        return

    try:
        svc = _services(clients_path, float(annual_rate), int(horizon))
    except (OSError, ValueError) as exc:
        st.error(f"Could not load clients: {exc}")
        return

    store: InMemoryStore = svc["store"]
    if not store.client_ids:
        st.warning("The clients file holds no clients.")
        return

    with st.sidebar:
        client_id = st.selectbox(
            "Client",
            store.client_ids,
            format_func=lambda cid: f"{store.get_client(cid).name or cid} ({cid})",
        )
        if st.button("Refresh projections"):
            svc["builder"].invalidate_client(client_id)

    client = store.get_client(client_id)
    check = validate_client_record(client)
    if not check.is_valid or check.warnings:
        with st.expander("Data checks", expanded=not check.is_valid):
            st.text(check.summary())

    try:
        analysis = svc["suggestions"].cached_analysis(client_id)
    except PlannerError as exc:
        st.error(str(exc))
        return
    projection = analysis.current_projection

    tab_proj, tab_goals, tab_sugg, tab_hist = st.tabs(["Projection", "Goals", "Suggestions", "History"])
    with tab_proj:
        _projection_panel(projection, analysis)
    with tab_goals:
        _goals_panel(analysis)
    with tab_sugg:
        _suggestions_panel(svc, client_id, analysis)
    with tab_hist:
        _history_panel(svc, client_id, projection)


def cli():
    """Console entry point: launch this file under ``streamlit run``."""
    from streamlit.web import cli as stcli

    sys.argv = ["streamlit", "run", str(Path(__file__).resolve()), *sys.argv[1:]]
    sys.exit(stcli.main())


if __name__ == "__main__":
    main()
