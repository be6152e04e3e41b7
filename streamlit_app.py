"""Streamlit dashboard showing one user's tenders straight from the Django ORM."""
from __future__ import annotations

import os
import sys
from itertools import islice
from pathlib import Path
from typing import Dict, Iterator, List, Sequence

import pandas as pd
import streamlit as st

# Ensure project root is importable and Django is configured before importing models
BASE_DIR = Path(__file__).resolve().parent
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

import django  # noqa: E402

django.setup()

from django.contrib.auth import get_user_model  # noqa: E402

from tenders.services.aggregator import AggregatedTender  # noqa: E402
from tenders.services.merger import keyword_tags  # noqa: E402
from tenders.services.normalizer import date_from_int  # noqa: E402
from tenders.services.views import overlay, user_views  # noqa: E402

st.set_page_config(page_title="Tender watch", layout="wide")


@st.cache_data(ttl=60)
def load_user_ids() -> List[str]:
    return list(get_user_model().objects.filter(tender_views__isnull=False).distinct().values_list("username", flat=True))


@st.cache_data(ttl=60)
def build_dataframe(user_id: str) -> pd.DataFrame:
    user = get_user_model().objects.get(username=user_id)
    entries = [AggregatedTender(tender=view.tender, keywords=set(keyword_tags(view.tender.tags))) for view in user_views(user)]
    rows = []
    for item in overlay(entries, user):
        tender = item.tender
        rows.append(
            {
                "Title": tender.title,
                "Agency": tender.unit_name,
                "Job number": tender.job_number,
                "Type": tender.type,
                "Date": date_from_int(tender.date),
                "Keywords": ", ".join(sorted(item.keywords)),
                "Versions": tender.versions.count(),
                "Archived": item.is_archived,
                "Highlighted": item.is_highlighted,
            }
        )
    return pd.DataFrame(rows)


def sidebar_filters(df: pd.DataFrame) -> Dict:
    st.sidebar.header("Filters")
    show_archived = st.sidebar.checkbox("Show archived", value=False)
    highlighted_only = st.sidebar.checkbox("Highlighted only", value=False)
    types = sorted(t for t in df["Type"].dropna().unique() if t)
    selected_types = st.sidebar.multiselect("Type", options=types)
    text = st.sidebar.text_input("Title contains", placeholder="e.g. road, bridge...")
    return {
        "show_archived": show_archived,
        "highlighted_only": highlighted_only,
        "types": selected_types,
        "text": text.strip(),
    }


def apply_filters(df: pd.DataFrame, filters: Dict) -> pd.DataFrame:
    if not filters["show_archived"]:
        df = df[~df["Archived"]]
    if filters["highlighted_only"]:
        df = df[df["Highlighted"]]
    if filters["types"]:
        df = df[df["Type"].isin(filters["types"])]
    if filters["text"]:
        df = df[df["Title"].str.contains(filters["text"], case=False, regex=False)]
    return df.sort_values("Date", ascending=False, na_position="last")


def main() -> None:
    st.title("Tender watch")
    user_ids = load_user_ids()
    if not user_ids:
        st.info("No user has tenders yet. Run a search or `manage.py fetch_tenders` first.")
        return

    user_id = st.sidebar.selectbox("User", options=user_ids)
    df = build_dataframe(user_id)
    if df.empty:
        st.info("This user has no tenders yet.")
        return

    filtered = apply_filters(df, sidebar_filters(df))
    st.write(f"{len(filtered)} tenders shown out of {len(df)}")
    st.dataframe(filtered, use_container_width=True, hide_index=True)

    st.download_button(
        label="Download JSON",
        data=filtered.to_json(orient="records", force_ascii=False, indent=2, date_format="iso"),
        file_name=f"tenders_{user_id}.json",
        mime="application/json",
    )

    render_board(filtered)


def render_board(df: pd.DataFrame) -> None:
    """Read-only board with one column per tender type."""
    st.subheader("By type")
    if df.empty:
        return
    max_cards = st.slider("Max cards per column", 3, 15, 6)
    grouped = df.groupby("Type")
    for chunk in chunked(sorted(grouped.groups.keys()), 4):
        cols = st.columns(len(chunk))
        for col, key in zip(cols, chunk):
            subset = grouped.get_group(key)
            col.markdown(f"**{key}** ({len(subset)})")
            for _, row in subset.head(max_cards).iterrows():
                star = "★ " if row["Highlighted"] else ""
                col.markdown(f"{star}**{row['Title']}**  \n<small>{row['Agency']} · {row['Date']}</small>", unsafe_allow_html=True)


def chunked(seq: Sequence, size: int) -> Iterator[List]:
    seq_iter = iter(seq)
    while True:
        block = list(islice(seq_iter, size))
        if not block:
            break
        yield block


if __name__ == "__main__":
    main()
