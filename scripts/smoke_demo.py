from __future__ import annotations

import argparse
import json
import time
import urllib.error
import urllib.request


def request_json(url: str, method: str = "GET", body: dict | None = None) -> tuple[int, dict]:
    data = json.dumps(body).encode("utf-8") if body is not None else None
    req = urllib.request.Request(url, data=data, method=method)
    if data is not None:
        req.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(req, timeout=10) as resp:
            return resp.status, json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as exc:
        return exc.code, json.loads(exc.read().decode("utf-8") or "{}")


def wait_for_layout(base: str, timeout: int) -> dict:
    deadline = time.time() + timeout
    last_error: Exception | None = None
    while time.time() < deadline:
        try:
            status, payload = request_json(f"{base}/api/layout")
            if status == 200:
                return payload
        except (OSError, ValueError) as exc:
            last_error = exc
        time.sleep(1)
    raise RuntimeError(f"Timed out waiting for {base}/api/layout: {last_error}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke test for a running layout API.")
    parser.add_argument("--base", default="http://localhost:8000")
    parser.add_argument("--timeout", type=int, default=60)
    args = parser.parse_args()

    base = args.base.rstrip("/")
    wait_for_layout(base, args.timeout)
    request_json(f"{base}/api/reset", method="POST")

    for _ in range(3):
        status, payload = request_json(f"{base}/api/nodes/root/children", "POST", {})
        if status != 200 or payload.get("status") != "ok":
            raise RuntimeError(f"Add child failed: {status} {payload}")

    nodes = {node["id"]: node for node in payload["nodes"]}
    sink = nodes.get("end-node")
    if sink is None:
        raise RuntimeError("Layout payload missing end-node")
    lowest = max(node["y"] + node["height"] for key, node in nodes.items() if key != "end-node")
    if sink["y"] <= lowest:
        raise RuntimeError("end-node is not below the main tree")

    status, _ = request_json(f"{base}/api/nodes/missing/collapse", method="POST")
    if status != 404:
        raise RuntimeError(f"Expected 404 for unknown node, got {status}")

    print("Smoke test passed.")


if __name__ == "__main__":
    main()
