#!/usr/bin/env python3
"""
Demo client: runs the customer service workflow on a live server and tails
its events over WebSocket.

Start the server first with ``python -m agentflow.main``.
"""

import asyncio
import json
import sys

import requests
import websockets

BASE_URL = "http://localhost:8000"
WS_URL = "ws://localhost:8000"

STATUS_EMOJI = {
    "workflow_start": "🚀",
    "workflow_step": "🔄",
    "workflow_step_manual": "🖐",
    "workflow_complete": "✅",
    "workflow_error": "❌",
}


def format_event(data):
    """One printable line for a message received from the run stream"""
    kind = data.get("type")
    if kind == "log":
        event_type = data["event_type"]
        timestamp = data["timestamp"].split("T")[1][:8]  # HH:MM:SS
        details = data.get("details", {})
        line = f"{STATUS_EMOJI.get(event_type, '📝')} [{timestamp}] {event_type}"
        if event_type == "workflow_step":
            line += f" #{details.get('step')} {details.get('agent_name')} -> {details.get('output_intent')}"
        elif event_type == "workflow_complete":
            line += f" after {details.get('total_steps')} steps ({details.get('termination')})"
        elif event_type == "workflow_error":
            line += f": {details.get('error')}"
        return line
    if kind == "status":
        return f"📋 Run status: {data['status']}"
    return f"ℹ️  {data.get('message', kind)}"


def find_customer_service_workflow():
    response = requests.get(f"{BASE_URL}/api/workflows", params={"name": "customer service"}, timeout=5)
    response.raise_for_status()
    workflows = response.json()
    if not workflows:
        raise RuntimeError("Customer Service Workflow not found; start the server with seeding enabled")
    return workflows[0]


def run_workflow(workflow_id, query):
    response = requests.post(f"{BASE_URL}/api/workflows/run", json={
        "workflow_id": workflow_id,
        "input": {"query": query, "user_id": "user_123"},
    }, timeout=30)
    response.raise_for_status()
    return response.json()


async def replay_run(run_id):
    """Connect to the run stream and print everything it has recorded"""
    async with websockets.connect(f"{WS_URL}/api/ws/runs/{run_id}") as websocket:
        while True:
            data = json.loads(await websocket.recv())
            print(format_event(data))
            if data.get("type") == "status":
                break


def main():
    try:
        requests.get(f"{BASE_URL}/health", timeout=2).raise_for_status()
    except requests.exceptions.ConnectionError:
        print("❌ Server not running. Please start with: python -m agentflow.main")
        return 1

    workflow = find_customer_service_workflow()
    print(f"📊 Using workflow {workflow['name']} ({workflow['id']})")

    summary = run_workflow(workflow["id"], "What is my postpaid balance?")
    print(f"🏃 Run {summary['run_id']} finished: {summary['status']} in {summary['total_steps']} steps")
    print(json.dumps(summary["final_output"], indent=2))

    asyncio.run(replay_run(summary["run_id"]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
