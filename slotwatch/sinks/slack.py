"""Slack message formatting and delivery."""

from __future__ import annotations

from slotwatch.common.constants import PHONE_PLACEHOLDER, SLACK_POST_URL, SLACK_PREVIEW_LIMIT
from slotwatch.common.errors import SinkError
from slotwatch.common.http import HttpClient, HttpRequestError
from slotwatch.common.models import FetchedLocation


def build_slack_message(fetched_locations: list[FetchedLocation]) -> str:
    if not fetched_locations:
        return "No Global Entry appointments found."

    lines = ["*Global Entry Availability*", ""]
    for index, item in enumerate(fetched_locations[:SLACK_PREVIEW_LIMIT], start=1):
        loc = item.location
        extra = loc.address_additional or ""
        phone = loc.phone_number or PHONE_PLACEHOLDER
        lines.extend(
            [
                f"{index}. (Date: {item.date.isoformat()}) *{loc.name}* (ID: {loc.id}) in {loc.city}, {loc.state}",
                f"Address: {loc.address} {extra}",
                f"Zip: {loc.postal_code}",
                f"Phone: {phone}",
                "",
            ]
        )

    remaining = len(fetched_locations) - SLACK_PREVIEW_LIMIT
    if remaining > 0:
        lines.append(f"...and {remaining} more.")
    return "\n".join(lines) + "\n"


def post_to_slack(client: HttpClient, token: str, channel: str, text: str) -> None:
    try:
        body = client.post_json(
            SLACK_POST_URL,
            payload={"channel": channel, "text": text},
            headers={"Authorization": f"Bearer {token}"},
        )
    except (HttpRequestError, UnicodeError) as exc:
        raise SinkError(f"Slack request failed: {exc}") from exc

    if body.get("ok") is not True:
        raise SinkError(body.get("error") or "Slack unknown error")
