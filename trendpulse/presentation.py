"""
Presentation layer for the dashboard.

Pure derivations over a store snapshot (category filter, bookmark membership,
"find similar" query) and a rich renderer for the console view.
"""

import datetime
from typing import Dict, List, NamedTuple, Optional, Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.rule import Rule
from rich.style import Style
from rich.table import Table
from rich.text import Text

from trendpulse.models import DashboardSnapshot, NewsItem, SourceType


class CategoryDisplay(NamedTuple):
    label: str
    glyph: str
    style: str


CATEGORY_DISPLAY: Dict[SourceType, CategoryDisplay] = {
    SourceType.ALL: CategoryDisplay("All Updates", "≡", "bold white"),
    SourceType.X: CategoryDisplay("X Posts", "𝕏", "sky_blue1"),
    SourceType.YOUTUBE: CategoryDisplay("YouTube", "▶", "red"),
    SourceType.NEWS: CategoryDisplay("News", "◉", "spring_green2"),
}

TAB_ORDER = (SourceType.ALL, SourceType.X, SourceType.YOUTUBE, SourceType.NEWS)


def filter_items(items: Sequence[NewsItem], source_type: SourceType) -> List[NewsItem]:
    """Returns the items of the given category in their original order."""
    if source_type == SourceType.ALL:
        return list(items)
    return [item for item in items if item["type"] == source_type]


def is_topic_saved(topic: str, saved_topics: Sequence[str]) -> bool:
    lowered = topic.lower()
    return any(t.lower() == lowered for t in saved_topics)


def similar_query(topic: str, title: str, words: int = 5) -> str:
    """Builds a follow-up query from the current topic and the start of a headline."""
    context = " ".join(title.split(" ")[:words])
    return f"{topic} focus on {context}"


def parse_tab(name: str) -> Optional[SourceType]:
    """Resolves a tab by value, member name or label, ignoring case."""
    wanted = name.strip().lower()
    for source_type, display in CATEGORY_DISPLAY.items():
        if wanted in (
            source_type.value.lower(),
            source_type.name.lower(),
            display.label.lower(),
        ):
            return source_type
    return None


class DashboardRenderer:
    """Builds the console view for a dashboard snapshot."""

    LOADING_MESSAGE = "Fetching latest updates..."

    def __init__(self, today: Optional[datetime.date] = None):
        self.today = today

    def _sidebar(self, snapshot: DashboardSnapshot) -> RenderableType:
        topic = snapshot["news"]["topic"].lower()
        text = Text()
        for i, saved in enumerate(snapshot["saved_topics"], start=1):
            style = "bold slate_blue1" if saved.lower() == topic else "grey50"
            text.append(f" {i}. {saved}\n", style=style)
        if not snapshot["saved_topics"]:
            text.append(" No saved topics\n", style="grey50")
        return Panel(text, title="Saved Topics", border_style="grey35")

    def _header(self, snapshot: DashboardSnapshot) -> RenderableType:
        today = self.today or datetime.date.today()
        news = snapshot["news"]
        marker = "★" if is_topic_saved(news["topic"], snapshot["saved_topics"]) else "☆"
        header = Text()
        header.append("DAILY BRIEF ", style="bold slate_blue1")
        header.append(today.strftime("%A, %B %d").upper(), style="grey50")
        header.append("\nLatest on: ", style="bold")
        header.append(news["topic"], style="bold sky_blue1")
        header.append(f" {marker}")
        return header

    def _brief(self, snapshot: DashboardSnapshot) -> RenderableType:
        synthesis = snapshot["synthesis"]
        news = snapshot["news"]
        if synthesis["translated"]:
            body, subtitle = synthesis["text"], "Show Original"
        else:
            body, subtitle = news["brief"], "Translate"
        if synthesis["loading"]:
            subtitle = "Translating..."

        parts: List[RenderableType] = [Text(body)]
        if news["grounding_sources"]:
            sources = Text("\nSources: ", style="grey50")
            for i, source in enumerate(news["grounding_sources"]):
                if i:
                    sources.append(", ", style="grey50")
                style = Style(link=source["uri"]) if source["uri"] else None
                sources.append(source["title"], style=style)
            parts.append(sources)
        return Panel(
            Group(*parts),
            title="Daily Synthesis",
            subtitle=subtitle,
            border_style="slate_blue1",
        )

    def _tabs(self, snapshot: DashboardSnapshot) -> RenderableType:
        tabs = Text()
        for source_type in TAB_ORDER:
            display = CATEGORY_DISPLAY[source_type]
            style = display.style
            if source_type == snapshot["active_tab"]:
                style = f"reverse {style}"
            tabs.append(f" {display.glyph} {display.label} ", style=style)
            tabs.append(" ")
        return tabs

    def _items(self, snapshot: DashboardSnapshot) -> RenderableType:
        active = snapshot["active_tab"]
        items = filter_items(snapshot["news"]["items"], active)
        if not items:
            target = "this topic" if active == SourceType.ALL else active.value
            return Text(f"No results found for {target}.", style="grey50")

        table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
        table.add_column("#", justify="right", style="grey50", no_wrap=True)
        table.add_column("kind", no_wrap=True)
        table.add_column("content", ratio=1)
        for i, item in enumerate(items, start=1):
            display = CATEGORY_DISPLAY[item["type"]]
            entry = snapshot["translations"].get(item["id"])
            show_translated = bool(entry and entry["translated"])
            title = entry["title"] if show_translated else item["title"]
            summary = entry["summary"] if show_translated else item["summary"]

            content = Text()
            content.append(title, style="bold")
            if entry and entry["loading"]:
                content.append("  [translating]", style="grey50")
            if snapshot["copied_id"] == item["id"]:
                content.append("  Copied!", style="bold green")
            content.append(f"\n{summary}\n")
            content.append(display.label.upper(), style=display.style)
            content.append(f" · {item['source']}", style="grey50")
            table.add_row(str(i), Text(display.glyph, style=display.style), content)
        return table

    def render(self, snapshot: DashboardSnapshot) -> RenderableType:
        news = snapshot["news"]
        parts: List[RenderableType] = [self._sidebar(snapshot)]

        if news["loading"]:
            parts.append(Text(self.LOADING_MESSAGE, style="italic slate_blue1"))
        elif news["error"]:
            error = Text()
            error.append("Could not load: ", style="bold")
            error.append(news["topic"], style="red")
            error.append(f"\n{news['error']}", style="red")
            parts.append(Panel(error, border_style="red"))
        else:
            parts.extend(
                [
                    self._header(snapshot),
                    self._brief(snapshot),
                    Rule("Trending Stream"),
                    self._tabs(snapshot),
                    self._items(snapshot),
                ]
            )
        return Group(*parts)
