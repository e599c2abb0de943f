#!/usr/bin/env python
"""
Check the business API configuration and reachability.

Usage:
    python scripts/check_api.py
    python scripts/check_api.py --url https://script.google.com/... --action getMasters
    python scripts/check_api.py --token <session token> --json
"""
import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.api.client import ApiClient
from lapin_ops.api.envelope import to_dict
from lapin_ops.config import config, configure_logging


def check_config() -> list:
    """Return human-readable problems with the environment configuration."""
    problems = []
    if not config.is_api_configured:
        problems.append("GAS_WEB_APP_URL is not set")
    if not config.line_channel_id:
        problems.append("LINE_LOGIN_CHANNEL_ID is not set (LINE login disabled)")
    if not config.line_callback_url:
        problems.append("LINE_LOGIN_CALLBACK_URL is not set (LINE login disabled)")
    return problems


def main():
    parser = argparse.ArgumentParser(description="Check the business API")
    parser.add_argument("--url", type=str, default=None, help="Override GAS_WEB_APP_URL")
    parser.add_argument("--action", type=str, default="getMasters", help="Read action to call")
    parser.add_argument("--token", type=str, default=None, help="Session token to send")
    parser.add_argument("--json", action="store_true", help="Print the decoded envelope")
    parser.add_argument("--log-level", type=str, default=None, help="Override LOG_LEVEL")

    args = parser.parse_args()
    configure_logging(args.log_level)

    print("=" * 60)
    print("Business API Check")
    print("=" * 60)

    problems = check_config()
    for problem in problems:
        print(f"  ⚠ {problem}")
    if not problems:
        print("  ✓ Configuration complete")
    print()

    client = ApiClient(base_url=args.url, token_provider=lambda: args.token)
    print(f"Endpoint: {client.base_url or '(none)'}")
    print(f"Action:   {args.action}")
    print("-" * 40)

    result = client.get(args.action)
    if args.json:
        print(json.dumps(to_dict(result), ensure_ascii=False, indent=2))

    print("=" * 60)
    if result.success:
        print("✓ API reachable")
        sys.exit(0)
    else:
        print(f"✗ {result.error.code}: {result.error_message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
