#!/usr/bin/env python3
"""
Inspect User Agents
===================

Diagnostic tool: shows how the gallery classifies user-agent strings and
what the AR button would do for every model in a catalog.

Usage:
    python scripts/inspect_user_agents.py data/models.json --ua "Mozilla/5.0 (iPhone; ...)"
    python scripts/inspect_user_agents.py data/models.json --ua-file agents.txt
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path to import the packages
sys.path.append(str(Path(__file__).parent.parent))

from arviewer.availability import resolve_availability
from arviewer.environment import classify_environment
from arviewer.launch import build_launch_target
from utils.validation import load_catalog

SAMPLE_AGENTS = [
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Mobile/15E148 Safari Line/13.21.0",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
]


def inspect(catalog_path: Path, agents, page_url: str):
    catalog = load_catalog(catalog_path)
    print(f"Catalog: {catalog_path} ({catalog.total} models)")

    for ua in agents:
        env = classify_environment(ua)
        print("=" * 60)
        print(ua)
        print(f"  platform={env.platform.value} safari={env.is_safari} chrome={env.is_chrome} "
              f"in_app={env.in_app_browser}")
        print(f"  quick_look={env.supports_quick_look} scene_viewer={env.supports_scene_viewer}")

        for entry in catalog.items:
            result = resolve_availability(entry, env)
            line = f"    {entry.id}: {result.label}"
            if result.available:
                target = build_launch_target(result, entry, env, page_url, entry.display_name)
                line += f" -> {target.href}"
            print(line)


def main():
    parser = argparse.ArgumentParser(description="Inspect AR availability per user agent")
    parser.add_argument("catalog", type=Path, help="Path to models.json")
    parser.add_argument("--ua", action="append", default=[], help="User-agent string (repeatable)")
    parser.add_argument("--ua-file", type=Path, help="File with one user-agent per line")
    parser.add_argument("--page-url", default="https://localhost/", help="Gallery page URL")
    args = parser.parse_args()

    agents = list(args.ua)
    if args.ua_file:
        agents.extend(line.strip() for line in args.ua_file.read_text().splitlines() if line.strip())
    if not agents:
        agents = SAMPLE_AGENTS

    inspect(args.catalog, agents, args.page_url)


if __name__ == "__main__":
    main()
