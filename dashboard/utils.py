"""Shared utilities for all dashboard pages."""

import os
import requests
import streamlit as st
from dotenv import load_dotenv

load_dotenv()

_API_URL = os.getenv("API_URL", "http://localhost:8000")
DEFAULT_COMMISSION = float(os.getenv("DEFAULT_COMMISSION", "8"))

RESULT_ICONS = {
    "WIN":     "🟢",
    "LOSE":    "🔴",
    "VOID":    "⚪",
    "PENDING": "🟡",
}


def _detail(exc: requests.HTTPError) -> str:
    try:
        return exc.response.json().get("detail", str(exc))
    except ValueError:
        return exc.response.text or str(exc)


def _send(method: str, endpoint: str, payload: dict = None, params: dict = None):
    try:
        r = requests.request(
            method,
            f"{_API_URL}{endpoint}",
            json=payload,
            params=params,
            timeout=15,
        )
        r.raise_for_status()
        return r.json() if r.content else True
    except requests.HTTPError as exc:
        st.error(f"API {exc.response.status_code}: {_detail(exc)}")
        return None
    except Exception as exc:
        st.error(f"Request failed: {exc}")
        return None


def api_get(endpoint: str, params: dict = None):
    return _send("GET", endpoint, params=params)


def api_post(endpoint: str, payload: dict):
    return _send("POST", endpoint, payload=payload)


def api_put(endpoint: str, payload: dict):
    return _send("PUT", endpoint, payload=payload)


def api_delete(endpoint: str):
    return _send("DELETE", endpoint)


def format_ev(ev_perc) -> str:
    """EV% for display; a missing estimate is not zero."""
    return "EV not available" if ev_perc is None else f"{ev_perc:+.2f}%"


def settle_commission_default(bet: dict) -> float:
    """Commission to pre-fill when settling: the bet's own, even when 0."""
    if bet.get("commission") is None:
        return DEFAULT_COMMISSION
    return float(bet["commission"])
