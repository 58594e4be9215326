#!/usr/bin/env python3
"""Manual smoke check against a running Pagecast server"""

import os
import sys
import uuid

import requests

API_URL = os.getenv("PAGECAST_URL", "http://localhost:8080")


def check(description, condition):
    print(f"   {'✅' if condition else '❌'} {description}")
    return condition


def run_round(session_id):
    print(f"\n1️⃣ Publishing page for session {session_id[:8]}...")
    response = requests.post(f"{API_URL}/s/{session_id}/set_page", data="Q1", timeout=5)
    ok = check(f"set_page -> {response.status_code}", response.status_code == 200)

    print("\n2️⃣ Two participants respond...")
    for user, answer in (("u1", "42"), ("u2", "7")):
        response = requests.post(f"{API_URL}/s/{session_id}/respond/{user}", data=answer, timeout=5)
        ok &= check(f"respond {user} -> {response.status_code}", response.status_code == 200)

    response = requests.get(f"{API_URL}/s/{session_id}/responses", timeout=5)
    ok &= check(f"responses -> {response.json()}", response.json() == {"u1": "42", "u2": "7"})
    ok &= check("no-cache header", response.headers.get("Cache-Control") == "no-cache")

    print("\n3️⃣ Next round clears responses...")
    requests.post(f"{API_URL}/s/{session_id}/set_page", data="Q2", timeout=5)
    response = requests.get(f"{API_URL}/s/{session_id}/responses", timeout=5)
    ok &= check(f"responses after new page -> {response.json()}", response.json() == {})

    print("\n4️⃣ Unknown session and oversized body are rejected...")
    response = requests.post(f"{API_URL}/s/{uuid.uuid4()}/respond/u1", data="x", timeout=5)
    ok &= check(f"respond to unknown session -> {response.status_code}", response.status_code == 400)
    response = requests.post(f"{API_URL}/s/{session_id}/set_page", data=b"x" * 1_000_001, timeout=30)
    ok &= check(f"oversized page -> {response.status_code}", response.status_code == 413)
    return ok


if __name__ == "__main__":
    try:
        stats = requests.get(f"{API_URL}/stats", timeout=2).json()
    except requests.RequestException:
        print(f"❌ Server not running at {API_URL}")
        print("   Please start with: pagecast --port 8080")
        sys.exit(1)

    print(f"📊 Server has {stats['num_sessions']} live sessions")
    passed = run_round(str(uuid.uuid4()))

    print("\n" + "=" * 50)
    print("✅ Smoke check passed" if passed else "❌ Smoke check failed")
    sys.exit(0 if passed else 1)
