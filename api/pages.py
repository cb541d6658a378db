"""
HTML pages served by the API.
"""

from datetime import datetime
from html import escape
from typing import Optional

from crawler.models import LatestVersion, VersionChange
from utilities.dates import check_time, format_datetime, format_relative_time, get_date_one_day_before


def _layout(title: str, body: str) -> str:
    return (
        "<!doctype html>"
        '<html lang="en">'
        '<meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width">'
        f"<title>{escape(title)}</title>"
        f"{body}"
        "</html>"
    )


def _time_tag(moment: datetime, text: str, with_title: bool = False) -> str:
    title = f' title="{escape(format_datetime(moment))}"' if with_title else ""
    return f'<time datetime="{moment.strftime("%Y-%m-%dT%H:%MZ")}"{title}>{escape(text)}</time>'


def render_home_page(
    latest: Optional[LatestVersion],
    last_change: Optional[VersionChange] = None,
    last_change_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Summary page for the latest version and the most recent change."""
    version = latest.version if latest else "currently unknown"
    parts = [f"<h1>Latest TomTom map version is {escape(version)}</h1>"]

    if latest:
        checked = check_time(latest.date)
        parts.append(
            "<p>Last checked "
            + _time_tag(checked, f"{format_relative_time(checked, now)} ago", with_title=True)
            + ".</p>"
        )

    if last_change and last_change_date:
        released = check_time(last_change_date)
        day_before = check_time(get_date_one_day_before(last_change_date))
        parts.append(
            f"<p>Version {escape(last_change.to_version)} was released "
            f"{escape(format_relative_time(released, now))} ago, between "
            + _time_tag(day_before, format_datetime(day_before))
            + " and "
            + _time_tag(released, format_datetime(released))
            + f". Previous map version was {escape(last_change.from_version)}.</p>"
        )

    parts.append('<nav><p><a href="/v1">JSON API</a></p></nav>')
    return _layout("What is the latest TomTom map version?", "".join(parts))


def render_api_index() -> str:
    body = (
        "<h1>TomTom Map Version API</h1>"
        "<ul>"
        '<li><a href="/v1/current">Current map version</a></li>'
        '<li><a href="/v1/history">Version history</a></li>'
        "</ul>"
        '<nav><p><a href="/">Front page</a></p></nav>'
    )
    return _layout("TomTom Map Version API", body)
