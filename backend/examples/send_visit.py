"""Example client that records a profile visit and prints the resulting report."""
from __future__ import annotations

import argparse
import os
from typing import Any, Dict, Optional

import requests


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send sample visit analytics events")
    parser.add_argument(
        "--api-url",
        default=os.environ.get("ANALYTICS_API_URL", "http://127.0.0.1:8000"),
        help="Analytics API base URL (default: %(default)s or ANALYTICS_API_URL)",
    )
    parser.add_argument("--slug", required=True, help="Public slug of the profile being visited")
    parser.add_argument("--profile-id", help="Profile id whose report should be printed")
    parser.add_argument("--project-id", help="Project id to record a click on")
    parser.add_argument("--referrer", default="https://www.linkedin.com/feed/")
    parser.add_argument("--seconds", type=int, default=30, help="Dwell time to report")
    parser.add_argument("--days", type=int, default=7, help="Report window in days (0 = all time)")
    return parser.parse_args(argv)


def visit_payload(slug: str, referrer: Optional[str] = None, device_type: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"slug": slug}
    if referrer:
        payload["referrer"] = referrer
    if device_type:
        payload["deviceType"] = device_type
    return payload


def interaction_payload(slug: str, project_id: str) -> Dict[str, Any]:
    return {"slug": slug, "type": "project", "itemId": project_id}


def duration_payload(slug: str, seconds: int) -> Dict[str, Any]:
    return {"slug": slug, "seconds": seconds}


def send_events(args: argparse.Namespace) -> Dict[str, Any]:
    headers = {"User-Agent": "send-visit-example/0.1"}
    visit = requests.post(
        f"{args.api_url}/analytics/visit",
        headers=headers,
        json=visit_payload(args.slug, args.referrer),
        timeout=10,
    )
    visit.raise_for_status()
    result = {"visit": visit.json()}

    if args.project_id:
        click = requests.post(
            f"{args.api_url}/analytics/interaction",
            headers=headers,
            json=interaction_payload(args.slug, args.project_id),
            timeout=10,
        )
        click.raise_for_status()
        result["interaction"] = click.json()

    duration = requests.post(
        f"{args.api_url}/analytics/duration",
        headers=headers,
        json=duration_payload(args.slug, args.seconds),
        timeout=10,
    )
    duration.raise_for_status()
    result["duration"] = duration.json()
    return result


def main() -> None:
    args = parse_args()
    print("Tracked:", send_events(args))

    if args.profile_id:
        report = requests.get(
            f"{args.api_url}/analytics/profiles/{args.profile_id}",
            params={"days": args.days},
            timeout=10,
        )
        report.raise_for_status()
        print("Report:", report.json())


if __name__ == "__main__":
    main()
