"""Streamlit dashboard for the wealth planner."""
