from __future__ import annotations

# Local git operations (status, rev-parse, tag, remote get-url)
GIT_TIMEOUT_SECONDS = 30.0

# Network-bound git operations (fetch, push, ls-remote)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# GitHub REST calls
GITHUB_HTTP_TIMEOUT_SECONDS = 30.0

# release-iso defaults
DEFAULT_POLL_INTERVAL_SECONDS = 10
DEFAULT_ASSET_TIMEOUT_SECONDS = 45 * 60

# monitor defaults
DEFAULT_MONITOR_INTERVAL_SECONDS = 30
MONITOR_SLEEP_SLICE_SECONDS = 0.2

# dashboard
RENDER_TICK_SECONDS = 0.06
INPUT_POLL_SECONDS = 0.01
