#!/usr/bin/env python3
"""
Entry point script to run a single GitHub App secret sync.

This script should be run from the project root directory:
    python run.py -c /etc/gh_get_token.conf

Environment variables:
    GH_TOKEN_SYNC_CONFIG: Config file path (default: /etc/gh_get_token.conf)
    GH_TOKEN_SYNC_DEADLINE_SECONDS: Overall run deadline (default: 300)
    GITHUB_APP_PRIVATE_KEY_CONTENT: Inline PEM key, overrides app_pem_path
"""
import sys

if __name__ == "__main__":
    from ghapp_secret_sync.cli import main

    sys.exit(main())
