#!/usr/bin/env python3
"""
Smoke test for a deployed lunch menu bot
Checks that the HTTP endpoints respond and the daily task is scheduled
"""
import os
import sys

import requests

# Base URL - set LUNCHBOT_URL to the public URL of the bot
BASE_URL = os.getenv("LUNCHBOT_URL", "http://localhost:3000")

# Routes to test
ROUTES = [
    ("/health", "Health"),
    ("/status", "Status"),
]


def check_route(path, name):
    """Check a single route"""
    url = BASE_URL + path
    try:
        response = requests.get(url, timeout=10)
        if response.status_code == 200:
            print(f"✓ {name:20} - OK (200)")
            return True
        else:
            print(f"✗ {name:20} - FAILED (Status: {response.status_code})")
            return False
    except requests.exceptions.RequestException as e:
        print(f"✗ {name:20} - ERROR: {str(e)}")
        return False


def check_schedule():
    """The daily task must be registered and running"""
    try:
        status = requests.get(BASE_URL + "/status", timeout=10).json()
    except (requests.exceptions.RequestException, ValueError) as e:
        print(f"✗ {'Schedule':20} - ERROR: {str(e)}")
        return False

    tasks = status.get("scheduled_tasks") or []
    running = [t for t in tasks if t.get("is_running")]
    if running:
        print(f"✓ {'Schedule':20} - next run {running[0].get('next_run_time')}")
        return True
    print(f"✗ {'Schedule':20} - no running task")
    return False


def main():
    """Run smoke tests"""
    print(f"\n🔍 Running smoke tests on {BASE_URL}\n")
    print("-" * 50)

    results = [check_route(path, name) for path, name in ROUTES]
    results.append(check_schedule())

    print("-" * 50)
    passed = sum(results)
    total = len(results)
    print(f"\n✅ Passed: {passed}/{total}")

    if passed == total:
        print("🎉 All smoke tests passed!")
        sys.exit(0)
    else:
        print("❌ Some tests failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
