"""
CRITICAL WARNING:
Do NOT run against production database.
This script creates throwaway profiles and races them for one email.
Use only in local or CI test environments.

Prerequisite: a running server plus tokens for N distinct active users,
e.g. `python manage.py create_profile "Stress 1" stress1@example.com --with-token`.

Run: python scripts/concurrency_stress_test.py TOKEN [TOKEN ...]
"""

import sys
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed

import requests

BASE = "http://127.0.0.1:8000/api/users"
PROFILE_URL = f"{BASE}/profile"
AUDIT_URL = f"{BASE}/audit-logs"
TIMEOUT = 10


def safe_json(resp, label):
    if "application/json" not in resp.headers.get("Content-Type", ""):
        print(f"[{label}] Non-JSON: {resp.text[:200]}")
        return None
    try:
        return resp.json()
    except ValueError:
        return None


def headers(token):
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "X-Request-ID": f"stress-{uuid.uuid4().hex[:12]}",
    }


def claim_email(token, email):
    resp = requests.put(
        PROFILE_URL, headers=headers(token), json={"email": email}, timeout=TIMEOUT
    )
    return token, resp.status_code, safe_json(resp, "PUT")


def audit_count(token):
    resp = requests.get(AUDIT_URL, headers=headers(token), timeout=TIMEOUT)
    body = safe_json(resp, "AUDIT")
    if resp.status_code != 200 or not body:
        print("AUDIT query failed:", resp.status_code, body)
        sys.exit(1)
    return body["data"]["pagination"]["totalCount"]


def run(tokens):
    print(
        f"=== Concurrency stress test ({len(tokens)} parallel email claims, "
        f"expect 1x200, {len(tokens) - 1}x400) ==="
    )
    email = f"contested-{uuid.uuid4().hex[:8]}@example.com"
    before = {token: audit_count(token) for token in tokens}

    results = []
    with ThreadPoolExecutor(max_workers=len(tokens)) as executor:
        futures = [executor.submit(claim_email, token, email) for token in tokens]
        for f in as_completed(futures):
            results.append(f.result())

    codes = [code for _, code, _ in results]
    ok = codes.count(200)
    conflict = sum(
        1
        for _, code, body in results
        if code == 400 and body and body.get("message") == "Email already exists"
    )
    if ok != 1 or conflict != len(tokens) - 1:
        print(
            f"INVARIANT BROKEN: expected 1x200, {len(tokens) - 1}x400; "
            f"got {ok}x200, {conflict}x400"
        )
        print("Status codes:", sorted(codes))
        sys.exit(1)

    # Exactly one new audit entry, owned by the winner
    for token, code, _ in results:
        added = audit_count(token) - before[token]
        expected = 1 if code == 200 else 0
        if added != expected:
            print(f"INVARIANT BROKEN: expected {expected} new audit entries, got {added}")
            sys.exit(1)

    print(f"OK: 1x200, {len(tokens) - 1}x400, one audit entry as expected.")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(2)
    run(sys.argv[1:])
